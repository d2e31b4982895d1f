"""Payment provider eligibility rules — pure functions.

Each rule takes (profile, context) and explains its verdict, so a routing
decision can report why a provider was left out.
"""

from dataclasses import dataclass

from routekit.resilience import BreakerRegistry
from routekit.scoring import RuleResult, check_enabled, check_membership, check_range
from verticals.payments.models import PaymentRequest, ProviderProfile


@dataclass
class PaymentContext:
    request: PaymentRequest
    breakers: BreakerRegistry


def check_currency(profile: ProviderProfile, ctx: PaymentContext) -> RuleResult:
    return check_membership(ctx.request.currency, profile.currencies, "currency", "Currency")


def check_country(profile: ProviderProfile, ctx: PaymentContext) -> RuleResult:
    return check_membership(ctx.request.country, profile.countries, "country", "Country",
                            empty_means_any=True)


def check_method(profile: ProviderProfile, ctx: PaymentContext) -> RuleResult:
    return check_membership(ctx.request.method.value, [m.value for m in profile.methods],
                            "method", "Method")


def check_amount(profile: ProviderProfile, ctx: PaymentContext) -> RuleResult:
    return check_range(ctx.request.amount, profile.min_amount, profile.max_amount,
                       rule_name="amount", label="Amount")


def check_circuit(profile: ProviderProfile, ctx: PaymentContext) -> RuleResult:
    is_open = ctx.breakers.is_open(profile.name)
    return RuleResult(
        passed=not is_open,
        rule_name="circuit",
        message="Circuit open" if is_open else "Circuit closed",
    )


PROVIDER_RULES = (
    check_enabled,
    check_currency,
    check_country,
    check_method,
    check_amount,
    check_circuit,
)
