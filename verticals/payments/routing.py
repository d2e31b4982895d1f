"""
Smart Payment Routing

Picks the best provider for a payment and falls back down a ranked chain:

1. Eligibility (currency, country, method, amount limits, open breakers)
2. Weighted scoring: fee (min), success rate (max), latency (min)
3. Execution through FallbackChain, idempotent per client key
"""
from __future__ import annotations
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from routekit.errors import DuplicateRequestError, NoEligibleProviderError
from routekit.observability import get_logger, get_tracer
from routekit.resilience import (
    BreakerRegistry,
    DeadLetterQueue,
    FallbackChain,
    HealthTracker,
    IdempotencyStatus,
    IdempotencyStore,
    RetryPolicy,
    call_maybe_async,
)
from routekit.scoring import Criterion, Direction, filter_eligible, score_candidates
from verticals.payments.config import DEFAULT_PROVIDERS, PaymentRoutingConfig
from verticals.payments.models import (
    PaymentRequest,
    PaymentResult,
    ProviderProfile,
    RoutingDecision,
    estimate_fee,
)
from verticals.payments.rules import PROVIDER_RULES, PaymentContext

logger = get_logger(__name__)

# (provider_name, request) -> transaction id
PaymentGateway = Callable[[str, PaymentRequest], Union[str, Awaitable[str]]]


class PaymentRouter:
    """Routes payments across providers with scoring and fallback."""

    def __init__(
        self,
        providers: Optional[list[ProviderProfile]] = None,
        config: Optional[PaymentRoutingConfig] = None,
        chain: Optional[FallbackChain] = None,
        idempotency: Optional[IdempotencyStore] = None,
        dlq: Optional[DeadLetterQueue] = None,
    ):
        self.config = config or PaymentRoutingConfig.default()
        profiles = list(DEFAULT_PROVIDERS if providers is None else providers)
        self.providers: dict[str, ProviderProfile] = {p.name: p for p in profiles}
        self.chain = chain or FallbackChain(
            breakers=BreakerRegistry.from_config(self.config.resilience),
            health=HealthTracker(),
            retry=RetryPolicy.from_config(self.config.resilience),
            dlq=dlq,
        )
        self.idempotency = idempotency or IdempotencyStore(
            ttl_seconds=self.config.resilience.idempotency_ttl_seconds,
        )

    @property
    def health(self) -> HealthTracker:
        return self.chain.health

    @property
    def breakers(self) -> BreakerRegistry:
        return self.chain.breakers

    def _criteria(self, request: PaymentRequest) -> list[Criterion]:
        weights = self.config.weights
        prior_weight = self.config.prior_weight
        return [
            Criterion(
                name="cost",
                weight=weights.cost,
                direction=Direction.MINIMIZE,
                value=lambda p: estimate_fee(p, request.amount),
            ),
            Criterion(
                name="success_rate",
                weight=weights.success_rate,
                direction=Direction.MAXIMIZE,
                value=lambda p: self.health.success_rate(p.name, p.success_rate, prior_weight),
            ),
            Criterion(
                name="latency",
                weight=weights.latency,
                direction=Direction.MINIMIZE,
                value=lambda p: self.health.latency_ms(p.name, p.avg_latency_ms),
            ),
        ]

    def route(self, request: PaymentRequest) -> RoutingDecision:
        """Rank eligible providers for the request."""
        with get_tracer().start_as_current_span("payments.route") as span:
            ctx = PaymentContext(request=request, breakers=self.breakers)
            eligible, rejected = filter_eligible(list(self.providers.values()), PROVIDER_RULES, ctx)
            span.set_attribute("routing.candidates", len(eligible))

            if not eligible:
                logger.warning(
                    "payments.no_provider",
                    currency=request.currency,
                    country=request.country,
                    method=request.method.value,
                    rejected=rejected,
                )
                raise NoEligibleProviderError(
                    rejected,
                    f"No provider supports {request.method.value} in {request.currency}/{request.country}",
                )

            ranked = score_candidates(eligible, self._criteria(request))
            chain = [r.name for r in ranked][: 1 + self.config.max_fallbacks]
            primary = self.providers[chain[0]]
            decision = RoutingDecision(
                primary=primary.name,
                fallbacks=chain[1:],
                ranked=ranked,
                rejected=rejected,
                estimated_fee=estimate_fee(primary, request.amount),
            )
            span.set_attribute("routing.selected", primary.name)

        logger.info(
            "payments.routed",
            primary=decision.primary,
            fallbacks=decision.fallbacks,
            score=round(ranked[0].score, 4),
            currency=request.currency,
            amount=str(request.amount),
        )
        return decision

    async def process(
        self,
        request: PaymentRequest,
        gateways: Mapping[str, PaymentGateway],
        tenant_id: str = "",
    ) -> PaymentResult:
        """Route and execute a payment, at most once per idempotency key."""
        key = request.idempotency_key
        if key:
            record = self.idempotency.check(key)
            if record is not None:
                if record.status == IdempotencyStatus.COMPLETED:
                    logger.info("payments.replayed", idempotency_key=key, provider=record.result.provider)
                    return record.result.model_copy(update={"replayed": True})
                raise DuplicateRequestError(key)
            self.idempotency.reserve(key, operation="payment")

        try:
            result = await self._execute(request, gateways, tenant_id)
        except Exception:
            if key:
                self.idempotency.fail(key)
            raise

        if key:
            self.idempotency.complete(key, result)
        return result

    async def _execute(
        self,
        request: PaymentRequest,
        gateways: Mapping[str, PaymentGateway],
        tenant_id: str,
    ) -> PaymentResult:
        decision = self.route(request)
        chain = [name for name in decision.chain if name in gateways]
        if not chain:
            rejected = {name: ["No gateway configured"] for name in decision.chain}
            raise NoEligibleProviderError(rejected, "No gateway configured for any ranked provider")

        async def charge(provider: str) -> Any:
            return await call_maybe_async(gateways[provider], provider, request)

        outcome = await self.chain.execute(
            chain,
            charge,
            operation_name="payment",
            payload=request.model_dump(mode="json"),
            tenant_id=tenant_id,
        )
        profile = self.providers[outcome.candidate]
        return PaymentResult(
            provider=outcome.candidate,
            transaction_id=str(outcome.result),
            amount=request.amount,
            currency=request.currency,
            fee=estimate_fee(profile, request.amount),
            fallback_used=outcome.candidate != decision.primary,
            attempts=[a.to_dict() for a in outcome.attempts],
            idempotency_key=request.idempotency_key,
        )
