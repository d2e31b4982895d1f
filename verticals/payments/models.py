"""Payments vertical — provider profiles, requests and routing results."""
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from routekit.scoring import ScoredCandidate

CENT = Decimal("0.01")


class PaymentMethod(str, Enum):
    CARD = "card"
    UPI = "upi"
    WALLET = "wallet"
    BANK_TRANSFER = "bank_transfer"
    PAYPAL = "paypal"


class PaymentStatus(str, Enum):
    SUCCEEDED = "succeeded"


# ---------------------------------------------------------------------------
# Provider profile
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProviderProfile:
    """Static routing profile for one payment provider.

    fixed_fee is expressed in the request currency. success_rate and
    avg_latency_ms are priors; observed health replaces them over time.
    """
    name: str
    currencies: tuple[str, ...]
    methods: tuple[PaymentMethod, ...]
    countries: tuple[str, ...] = ()  # empty = any country
    fee_percent: Decimal = Decimal("2.9")
    fixed_fee: Decimal = Decimal("0.00")
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    success_rate: float = 0.95
    avg_latency_ms: float = 400.0
    priority: int = 0
    enabled: bool = True


def estimate_fee(profile: ProviderProfile, amount: Decimal) -> Decimal:
    """amount * fee_percent / 100 + fixed_fee, rounded half-up to cents."""
    fee = amount * profile.fee_percent / Decimal("100") + profile.fixed_fee
    return fee.quantize(CENT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Request / result
# ---------------------------------------------------------------------------

class PaymentRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    currency: str = Field(..., pattern=r"^[A-Za-z]{3}$")
    country: str = Field(..., pattern=r"^[A-Za-z]{2}$")
    method: PaymentMethod = PaymentMethod.CARD
    customer_id: Optional[str] = None
    idempotency_key: Optional[str] = Field(None, max_length=255)

    @field_validator("currency", "country")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()


class PaymentResult(BaseModel):
    status: PaymentStatus = PaymentStatus.SUCCEEDED
    provider: str
    transaction_id: str
    amount: Decimal
    currency: str
    fee: Decimal
    fallback_used: bool = False
    attempts: list[dict[str, Any]] = Field(default_factory=list)
    idempotency_key: Optional[str] = None
    replayed: bool = False


@dataclass
class RoutingDecision:
    """Ranked provider chain for one request."""
    primary: str
    fallbacks: list[str]
    ranked: list[ScoredCandidate]
    rejected: dict[str, list[str]] = field(default_factory=dict)
    estimated_fee: Decimal = Decimal("0.00")

    @property
    def chain(self) -> list[str]:
        return [self.primary, *self.fallbacks]

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary": self.primary,
            "fallbacks": list(self.fallbacks),
            "estimated_fee": str(self.estimated_fee),
            "ranked": [r.to_dict() for r in self.ranked],
            "rejected": self.rejected,
        }
