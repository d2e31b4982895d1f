"""
Routekit Idempotency Store — route and execute a request at most once.

A client retrying a payment with the same key gets the stored result back
instead of a second charge through a different provider.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable
import hashlib
import json


class IdempotencyStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class IdempotencyRecord:
    key: str
    operation: str
    result: Any = None
    status: IdempotencyStatus = IdempotencyStatus.IN_PROGRESS
    created_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: datetime | None = None
    expires_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at


def generate_idempotency_key(operation: str, **params: Any) -> str:
    """Deterministic key: same operation + params always give the same key."""
    data = json.dumps({"op": operation, **params}, sort_keys=True, default=str)
    return hashlib.sha256(data.encode()).hexdigest()[:32]


class IdempotencyStore:
    """In-memory store with per-record TTL."""

    def __init__(self, ttl_seconds: int = 3600, clock: Callable[[], datetime] = datetime.utcnow):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._records: dict[str, IdempotencyRecord] = {}

    def check(self, key: str) -> IdempotencyRecord | None:
        """Return the live record for key, dropping it if expired."""
        record = self._records.get(key)
        if record is None:
            return None
        if record.is_expired(self._clock()):
            del self._records[key]
            return None
        return record

    def reserve(self, key: str, operation: str) -> IdempotencyRecord | None:
        """Mark key in progress. None if the key is already live."""
        if self.check(key) is not None:
            return None
        now = self._clock()
        record = IdempotencyRecord(
            key=key,
            operation=operation,
            created_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )
        self._records[key] = record
        return record

    def complete(self, key: str, result: Any) -> bool:
        record = self._records.get(key)
        if not record:
            return False
        record.status = IdempotencyStatus.COMPLETED
        record.result = result
        record.completed_at = self._clock()
        return True

    def fail(self, key: str) -> bool:
        """Release the key so a later attempt can reserve it again."""
        return self._records.pop(key, None) is not None

    def cleanup_expired(self) -> int:
        now = self._clock()
        expired = [k for k, r in self._records.items() if r.is_expired(now)]
        for k in expired:
            del self._records[k]
        return len(expired)
