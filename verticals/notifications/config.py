"""Notifications vertical configuration.

Weights shift with priority: cost dominates for low-priority digests,
latency for high-priority and critical alerts.
"""

from dataclasses import dataclass, field

from routekit.config import ResilienceConfig
from verticals.notifications.models import Channel, ChannelProfile, Priority


@dataclass(frozen=True)
class NotificationWeights:
    preference: float
    delivery_rate: float
    latency: float
    cost: float


@dataclass(frozen=True)
class PriorityWeights:
    low: NotificationWeights = NotificationWeights(preference=0.35, delivery_rate=0.2, latency=0.05, cost=0.4)
    normal: NotificationWeights = NotificationWeights(preference=0.4, delivery_rate=0.3, latency=0.15, cost=0.15)
    high: NotificationWeights = NotificationWeights(preference=0.25, delivery_rate=0.3, latency=0.35, cost=0.1)
    critical: NotificationWeights = NotificationWeights(preference=0.1, delivery_rate=0.4, latency=0.45, cost=0.05)

    def for_priority(self, priority: Priority) -> NotificationWeights:
        return getattr(self, priority.value)


@dataclass(frozen=True)
class NotificationRoutingConfig:
    """Complete configuration for notification routing."""

    weights: PriorityWeights = field(default_factory=PriorityWeights)
    resilience: ResilienceConfig = field(default_factory=lambda: ResilienceConfig(max_retries=1))
    max_channels: int = 3  # fallback chain length
    prior_weight: float = 20.0

    @classmethod
    def default(cls) -> "NotificationRoutingConfig":
        return cls()


DEFAULT_CHANNELS: tuple[ChannelProfile, ...] = (
    ChannelProfile(channel=Channel.EMAIL, cost_per_message=0.001, delivery_rate=0.97, avg_latency_ms=5000.0),
    ChannelProfile(channel=Channel.SMS, cost_per_message=0.0075, delivery_rate=0.98, avg_latency_ms=3000.0),
    ChannelProfile(channel=Channel.PUSH, cost_per_message=0.0001, delivery_rate=0.90, avg_latency_ms=500.0),
    # Seen only when the user next opens the app
    ChannelProfile(channel=Channel.IN_APP, cost_per_message=0.0, delivery_rate=0.80, avg_latency_ms=60000.0),
    ChannelProfile(channel=Channel.WEBHOOK, cost_per_message=0.0, delivery_rate=0.95, avg_latency_ms=800.0),
)
