"""
Notification channel senders.

- WebhookSender: signed JSON POST over httpx (HMAC-SHA256)
- InAppInbox: per-user in-memory inbox for the in-app channel

Email/SMS/push vendors plug in as any object with
`async send(notification, preference) -> message_id`.
"""
from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
import hashlib
import hmac
import json
import uuid

import httpx

from routekit.errors import ProviderError
from verticals.notifications.models import Notification, NotificationPreference


def sign_payload(body: str, secret: str) -> str:
    """HMAC-SHA256 hex digest of the request body."""
    return hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()


class WebhookSender:
    """POSTs the notification to the user's webhook URL."""

    def __init__(
        self,
        secret: str = "",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.secret = secret
        self.timeout = timeout
        self._client = client

    async def send(self, notification: Notification, preference: NotificationPreference) -> str:
        url = preference.contacts.webhook_url
        if not url:
            raise ProviderError("webhook", "No webhook URL on file", retryable=False)

        delivery_id = str(uuid.uuid4())
        body = json.dumps(notification.model_dump(mode="json"), sort_keys=True, default=str)
        headers = {
            "Content-Type": "application/json",
            "X-Routekit-Event": "notification",
            "X-Routekit-Delivery": delivery_id,
        }
        if self.secret:
            headers["X-Routekit-Signature"] = f"sha256={sign_payload(body, self.secret)}"

        try:
            if self._client is not None:
                resp = await self._client.post(url, content=body, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    resp = await client.post(url, content=body, headers=headers, timeout=self.timeout)
        except httpx.HTTPError as exc:
            raise ProviderError("webhook", f"{type(exc).__name__}: {exc}") from exc

        if 200 <= resp.status_code < 300:
            return delivery_id
        # 4xx is a rejection and stops the chain; 429 is throttling and is retried
        retryable = resp.status_code >= 500 or resp.status_code == 429
        raise ProviderError(
            "webhook",
            f"HTTP {resp.status_code}",
            retryable=retryable,
            status_code=resp.status_code,
        )


class InAppInbox:
    """In-memory in-app inbox keyed by user id."""

    def __init__(self, max_per_user: int = 100):
        self.max_per_user = max_per_user
        self._inbox: dict[str, list[dict[str, Any]]] = {}

    async def send(self, notification: Notification, preference: NotificationPreference) -> str:
        messages = self._inbox.setdefault(notification.user_id, [])
        messages.append({
            "id": notification.id,
            "title": notification.title,
            "body": notification.body,
            "priority": notification.priority.value,
            "read": False,
            "received_at": datetime.utcnow().isoformat(),
        })
        # Oldest messages drop off first
        del messages[: max(0, len(messages) - self.max_per_user)]
        return notification.id

    def list_messages(self, user_id: str, unread_only: bool = False) -> list[dict[str, Any]]:
        messages = self._inbox.get(user_id, [])
        if unread_only:
            messages = [m for m in messages if not m["read"]]
        return list(reversed(messages))

    def mark_read(self, user_id: str, notification_id: str) -> bool:
        for message in self._inbox.get(user_id, []):
            if message["id"] == notification_id:
                message["read"] = True
                return True
        return False
