"""Payments vertical configuration.

Criteria weights, chain length and the default provider table. The numbers
in DEFAULT_PROVIDERS are illustrative profiles, not vendor price lists.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from routekit.config import ResilienceConfig, env_int
from verticals.payments.models import PaymentMethod, ProviderProfile


@dataclass(frozen=True)
class PaymentWeights:
    cost: float = 0.4
    success_rate: float = 0.4
    latency: float = 0.2


@dataclass(frozen=True)
class PaymentRoutingConfig:
    """Complete configuration for payment routing.

    Usage::

        config = PaymentRoutingConfig.default()
        router = PaymentRouter(config=config)
    """

    weights: PaymentWeights = field(default_factory=PaymentWeights)
    resilience: ResilienceConfig = field(default_factory=ResilienceConfig)
    max_fallbacks: int = 2
    prior_weight: float = 20.0  # observations the profile success rate is worth

    @classmethod
    def default(cls) -> "PaymentRoutingConfig":
        return cls()

    @classmethod
    def from_env(
        cls,
        prefix: str = "ROUTEKIT_PAYMENTS_",
        resilience: Optional[ResilienceConfig] = None,
    ) -> "PaymentRoutingConfig":
        """Example: ROUTEKIT_PAYMENTS_MAX_FALLBACKS=1"""
        return cls(
            resilience=resilience or ResilienceConfig(),
            max_fallbacks=env_int(f"{prefix}MAX_FALLBACKS", cls.max_fallbacks),
        )


DEFAULT_PROVIDERS: tuple[ProviderProfile, ...] = (
    ProviderProfile(
        name="stripe",
        currencies=("USD", "EUR", "GBP", "CAD", "AUD", "JPY", "SGD", "INR"),
        methods=(PaymentMethod.CARD, PaymentMethod.WALLET, PaymentMethod.BANK_TRANSFER),
        fee_percent=Decimal("2.9"),
        fixed_fee=Decimal("0.30"),
        min_amount=Decimal("0.50"),
        max_amount=Decimal("999999.99"),
        success_rate=0.96,
        avg_latency_ms=350.0,
        priority=2,
    ),
    ProviderProfile(
        name="razorpay",
        currencies=("INR",),
        countries=("IN",),
        methods=(PaymentMethod.CARD, PaymentMethod.UPI, PaymentMethod.WALLET, PaymentMethod.BANK_TRANSFER),
        fee_percent=Decimal("2.0"),
        fixed_fee=Decimal("0.00"),
        min_amount=Decimal("1.00"),
        max_amount=Decimal("500000.00"),
        success_rate=0.97,
        avg_latency_ms=300.0,
        priority=1,
    ),
    ProviderProfile(
        name="paypal",
        currencies=("USD", "EUR", "GBP", "CAD", "AUD", "JPY"),
        methods=(PaymentMethod.PAYPAL, PaymentMethod.CARD),
        fee_percent=Decimal("3.49"),
        fixed_fee=Decimal("0.49"),
        min_amount=Decimal("1.00"),
        max_amount=Decimal("10000.00"),
        success_rate=0.93,
        avg_latency_ms=600.0,
        priority=0,
    ),
)
