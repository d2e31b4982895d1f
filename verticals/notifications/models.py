"""Notifications vertical — channels, user preferences and delivery results."""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import uuid

from pydantic import BaseModel, Field, field_validator

from routekit.scoring import ScoredCandidate


class Channel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    IN_APP = "in_app"
    WEBHOOK = "webhook"


class Priority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


class DeliveryStrategy(str, Enum):
    FALLBACK = "fallback"  # first channel that works
    FAN_OUT = "fan_out"    # every eligible channel at once


@dataclass(frozen=True)
class ChannelProfile:
    """Static routing profile for one channel (priors, not measurements)."""
    channel: Channel
    cost_per_message: float
    delivery_rate: float
    avg_latency_ms: float
    enabled: bool = True

    @property
    def name(self) -> str:
        return self.channel.value


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------

class QuietHours(BaseModel):
    """Local-time window [start_hour, end_hour); wraps midnight when start > end."""
    start_hour: int = Field(..., ge=0, le=23)
    end_hour: int = Field(..., ge=0, le=23)
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    def contains(self, moment: datetime) -> bool:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        hour = moment.astimezone(ZoneInfo(self.timezone)).hour
        if self.start_hour == self.end_hour:
            return False
        if self.start_hour < self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour


class Contacts(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    device_token: Optional[str] = None
    webhook_url: Optional[str] = None


class NotificationPreference(BaseModel):
    user_id: str
    channels: list[Channel] = Field(default_factory=list)  # preferred first; empty = any
    opted_out: list[Channel] = Field(default_factory=list)
    quiet_hours: Optional[QuietHours] = None
    contacts: Contacts = Field(default_factory=Contacts)


class Notification(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    title: str = Field(..., min_length=1)
    body: str = ""
    priority: Priority = Priority.NORMAL
    category: Optional[str] = None
    data: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Plans and reports
# ---------------------------------------------------------------------------

@dataclass
class DeliveryPlan:
    strategy: DeliveryStrategy
    channels: list[Channel]
    ranked: list[ScoredCandidate]
    rejected: dict[str, list[str]] = field(default_factory=dict)
    suppressed_by_quiet_hours: list[Channel] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "channels": [c.value for c in self.channels],
            "ranked": [r.to_dict() for r in self.ranked],
            "rejected": self.rejected,
            "suppressed_by_quiet_hours": [c.value for c in self.suppressed_by_quiet_hours],
        }


class DeliveryReport(BaseModel):
    notification_id: str
    delivered: bool
    strategy: DeliveryStrategy
    channels: list[Channel] = Field(default_factory=list)
    message_ids: dict[str, str] = Field(default_factory=dict)
    failed: dict[str, str] = Field(default_factory=dict)
    attempts: list[dict[str, Any]] = Field(default_factory=list)
    fallback_used: bool = False
