"""
Smart Notification Routing

Decides how to reach a user:

1. Eligibility: opt-outs, contact details, user channel list, quiet hours,
   open breakers
2. Weighted scoring: user preference rank, delivery rate, latency, cost
   (weights depend on the notification priority)
3. Strategy: critical -> fan out to every eligible channel at once;
   otherwise try the ranked chain until one channel delivers
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Mapping, Optional, Protocol
import asyncio

from routekit.errors import AllCandidatesFailedError, NoEligibleChannelError, ProviderError
from routekit.observability import get_logger, get_tracer
from routekit.resilience import (
    Attempt,
    BreakerRegistry,
    DeadLetterQueue,
    FallbackChain,
    FallbackOutcome,
    HealthTracker,
    RetryPolicy,
    call_maybe_async,
)
from routekit.scoring import Criterion, Direction, filter_eligible, score_candidates
from verticals.notifications.config import DEFAULT_CHANNELS, NotificationRoutingConfig
from verticals.notifications.models import (
    Channel,
    ChannelProfile,
    DeliveryPlan,
    DeliveryReport,
    DeliveryStrategy,
    Notification,
    NotificationPreference,
    Priority,
)
from verticals.notifications.rules import CHANNEL_RULES, QUIET_HOURS_MESSAGE, NotificationContext

logger = get_logger(__name__)


class ChannelSender(Protocol):
    """Delivers one notification over one channel; returns a message id."""

    async def send(self, notification: Notification, preference: NotificationPreference) -> str:
        ...


class NotificationRouter:
    """Plans and delivers notifications across channels."""

    def __init__(
        self,
        channels: Optional[list[ChannelProfile]] = None,
        config: Optional[NotificationRoutingConfig] = None,
        chain: Optional[FallbackChain] = None,
        dlq: Optional[DeadLetterQueue] = None,
    ):
        self.config = config or NotificationRoutingConfig.default()
        profiles = list(DEFAULT_CHANNELS if channels is None else channels)
        self.channels: dict[Channel, ChannelProfile] = {p.channel: p for p in profiles}
        self.chain = chain or FallbackChain(
            breakers=BreakerRegistry.from_config(self.config.resilience),
            health=HealthTracker(),
            retry=RetryPolicy.from_config(self.config.resilience),
            dlq=dlq,
        )

    @property
    def health(self) -> HealthTracker:
        return self.chain.health

    @property
    def breakers(self) -> BreakerRegistry:
        return self.chain.breakers

    def _criteria(self, notification: Notification, preference: NotificationPreference) -> list[Criterion]:
        weights = self.config.weights.for_priority(notification.priority)
        preferred = preference.channels
        prior_weight = self.config.prior_weight

        def preference_rank(profile: ChannelProfile) -> float:
            if profile.channel in preferred:
                return float(len(preferred) - preferred.index(profile.channel))
            return 0.0

        # Latency stays on the profile: sender call time is not delivery time
        return [
            Criterion("preference", weights.preference, Direction.MAXIMIZE, preference_rank),
            Criterion(
                "delivery_rate",
                weights.delivery_rate,
                Direction.MAXIMIZE,
                lambda p: self.health.success_rate(p.name, p.delivery_rate, prior_weight),
            ),
            Criterion("latency", weights.latency, Direction.MINIMIZE, "avg_latency_ms"),
            Criterion("cost", weights.cost, Direction.MINIMIZE, "cost_per_message"),
        ]

    def plan(
        self,
        notification: Notification,
        preference: NotificationPreference,
        now: Optional[datetime] = None,
    ) -> DeliveryPlan:
        """Rank reachable channels and pick a delivery strategy."""
        now = now or datetime.now(timezone.utc)
        quiet = preference.quiet_hours is not None and preference.quiet_hours.contains(now)

        with get_tracer().start_as_current_span("notifications.plan") as span:
            ctx = NotificationContext(
                notification=notification,
                preference=preference,
                quiet=quiet,
                breakers=self.breakers,
            )
            eligible, rejected = filter_eligible(list(self.channels.values()), CHANNEL_RULES, ctx)
            suppressed = [
                Channel(name) for name, reasons in rejected.items() if reasons == [QUIET_HOURS_MESSAGE]
            ]
            span.set_attribute("routing.candidates", len(eligible))

            if not eligible:
                logger.warning(
                    "notifications.no_channel",
                    user_id=notification.user_id,
                    priority=notification.priority.value,
                    rejected=rejected,
                )
                raise NoEligibleChannelError(rejected, f"No channel can reach user {notification.user_id}")

            ranked = score_candidates(
                eligible,
                self._criteria(notification, preference),
                priority=lambda p: 0,
            )
            if notification.priority == Priority.CRITICAL:
                strategy = DeliveryStrategy.FAN_OUT
                selected = [Channel(r.name) for r in ranked]
            else:
                strategy = DeliveryStrategy.FALLBACK
                selected = [Channel(r.name) for r in ranked][: self.config.max_channels]
            span.set_attribute("routing.selected", [c.value for c in selected])

        logger.info(
            "notifications.planned",
            user_id=notification.user_id,
            priority=notification.priority.value,
            strategy=strategy.value,
            channels=[c.value for c in selected],
            quiet_hours=quiet,
        )
        return DeliveryPlan(
            strategy=strategy,
            channels=selected,
            ranked=ranked,
            rejected=rejected,
            suppressed_by_quiet_hours=suppressed,
        )

    async def deliver(
        self,
        notification: Notification,
        preference: NotificationPreference,
        senders: Mapping[Channel, ChannelSender],
        now: Optional[datetime] = None,
        tenant_id: str = "",
    ) -> DeliveryReport:
        """Plan, then deliver through the configured senders."""
        plan = self.plan(notification, preference, now=now)
        channels = [c for c in plan.channels if c in senders]
        if not channels:
            raise NoEligibleChannelError(
                {c.value: ["No sender configured"] for c in plan.channels},
                "No sender configured for any planned channel",
            )

        async def send(name: str) -> str:
            sender = senders[Channel(name)]
            return await call_maybe_async(sender.send, notification, preference)

        payload = notification.model_dump(mode="json")

        if plan.strategy == DeliveryStrategy.FALLBACK:
            outcome = await self.chain.execute(
                [c.value for c in channels],
                send,
                operation_name="notification",
                payload=payload,
                tenant_id=tenant_id,
            )
            return DeliveryReport(
                notification_id=notification.id,
                delivered=True,
                strategy=plan.strategy,
                channels=[Channel(outcome.candidate)],
                message_ids={outcome.candidate: str(outcome.result)},
                attempts=[a.to_dict() for a in outcome.attempts],
                fallback_used=outcome.candidate != plan.channels[0].value,
            )

        return await self._fan_out(notification, channels, send, payload, tenant_id)

    async def _fan_out(self, notification, channels, send, payload, tenant_id) -> DeliveryReport:
        async def one(channel: Channel) -> tuple[Channel, Optional[FallbackOutcome], Optional[Exception]]:
            try:
                outcome = await self.chain.execute(
                    [channel.value],
                    send,
                    operation_name="notification.fan_out",
                    dead_letter=False,
                )
            except (AllCandidatesFailedError, ProviderError) as exc:
                return channel, None, exc
            return channel, outcome, None

        results = await asyncio.gather(*(one(c) for c in channels))

        delivered: list[Channel] = []
        message_ids: dict[str, str] = {}
        failed: dict[str, str] = {}
        attempts: list[Attempt] = []
        for channel, outcome, error in results:
            if outcome is not None:
                delivered.append(channel)
                message_ids[channel.value] = str(outcome.result)
                attempts.extend(outcome.attempts)
            else:
                failed[channel.value] = str(error)
                if isinstance(error, AllCandidatesFailedError):
                    attempts.extend(error.attempts)
                else:
                    attempts.append(Attempt(candidate=channel.value, attempt=1, success=False, error=str(error)))

        if not delivered:
            error = AllCandidatesFailedError(attempts)
            if self.chain.dlq is not None:
                self.chain.dlq.enqueue(
                    operation="notification.fan_out",
                    payload=payload,
                    error=str(error),
                    attempts=[a.to_dict() for a in attempts],
                    tenant_id=tenant_id,
                )
            raise error

        logger.info(
            "notifications.fanned_out",
            notification_id=notification.id,
            delivered=[c.value for c in delivered],
            failed=list(failed),
        )
        return DeliveryReport(
            notification_id=notification.id,
            delivered=True,
            strategy=DeliveryStrategy.FAN_OUT,
            channels=delivered,
            message_ids=message_ids,
            failed=failed,
            attempts=[a.to_dict() for a in attempts],
        )
