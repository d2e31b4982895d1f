"""Notifications API router.

- POST /plan — rank channels for a notification and pick a strategy
- POST /deliver — plan, then send through the registered senders
- GET /inbox/{user_id} — in-app inbox
- POST /inbox/{user_id}/{notification_id}/read — mark a message read

Senders are registered per channel on app.state.notification_senders; the
in-app inbox is always one of them.
"""
from typing import Mapping

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from api.middleware import get_current_tenant
from verticals.notifications.models import Channel, Notification, NotificationPreference
from verticals.notifications.routing import ChannelSender, NotificationRouter
from verticals.notifications.senders import InAppInbox

router = APIRouter()


class PlanRequest(BaseModel):
    notification: Notification
    preference: NotificationPreference


def get_notification_router(request: Request) -> NotificationRouter:
    return request.app.state.notification_router


def get_senders(request: Request) -> Mapping[Channel, ChannelSender]:
    return request.app.state.notification_senders


def get_inbox(request: Request) -> InAppInbox:
    return request.app.state.inbox


@router.post("/plan")
async def plan_notification(
    body: PlanRequest,
    notifications: NotificationRouter = Depends(get_notification_router),
):
    plan = notifications.plan(body.notification, body.preference)
    return plan.to_dict()


@router.post("/deliver")
async def deliver_notification(
    body: PlanRequest,
    notifications: NotificationRouter = Depends(get_notification_router),
    senders: Mapping[Channel, ChannelSender] = Depends(get_senders),
):
    report = await notifications.deliver(
        body.notification, body.preference, senders, tenant_id=get_current_tenant(),
    )
    return report.model_dump(mode="json")


@router.get("/inbox/{user_id}")
async def read_inbox(user_id: str, unread_only: bool = False, inbox: InAppInbox = Depends(get_inbox)):
    return {"user_id": user_id, "messages": inbox.list_messages(user_id, unread_only=unread_only)}


@router.post("/inbox/{user_id}/{notification_id}/read")
async def mark_read(user_id: str, notification_id: str, inbox: InAppInbox = Depends(get_inbox)):
    if not inbox.mark_read(user_id, notification_id):
        raise HTTPException(status_code=404, detail=f"Message {notification_id} not found")
    return {"user_id": user_id, "notification_id": notification_id, "read": True}
