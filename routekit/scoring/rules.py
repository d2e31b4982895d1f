"""Pure-function eligibility rules.

Rules are stateless functions: (candidate, context) -> RuleResult.
No I/O and no side effects, so every rejection is explainable and a
routing decision can report exactly why a candidate was skipped.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Sequence, Union


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class RuleResult:
    """Outcome of a single rule evaluation."""

    passed: bool
    rule_name: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class RuleSetResult:
    """Aggregate outcome of multiple rules."""

    all_passed: bool
    results: list[RuleResult]
    failed: list[RuleResult] = field(default_factory=list)

    def __post_init__(self):
        self.failed = [r for r in self.results if not r.passed]
        self.all_passed = len(self.failed) == 0


Rule = Callable[[Any, Any], RuleResult]


# ---------------------------------------------------------------------------
# Generic rules
# ---------------------------------------------------------------------------

def check_enabled(candidate: Any, context: Any = None) -> RuleResult:
    """Candidate must not be switched off."""
    enabled = getattr(candidate, "enabled", True)
    return RuleResult(
        passed=bool(enabled),
        rule_name="enabled",
        message="Enabled" if enabled else "Disabled by configuration",
    )


def check_membership(
    value: Any,
    allowed: Sequence[Any],
    rule_name: str,
    label: str,
    empty_means_any: bool = False,
) -> RuleResult:
    """Value must be one of the allowed values.

    With empty_means_any, an empty allow-list accepts everything.
    """
    if empty_means_any and not allowed:
        return RuleResult(passed=True, rule_name=rule_name, message=f"Any {label} accepted")
    passed = value in allowed
    return RuleResult(
        passed=passed,
        rule_name=rule_name,
        message=(
            f"{label} {value} supported"
            if passed
            else f"{label} {value} not supported"
        ),
        details={"value": value, "allowed": list(allowed)},
    )


def check_range(
    value: Any,
    minimum: Any = None,
    maximum: Any = None,
    rule_name: str = "range",
    label: str = "value",
) -> RuleResult:
    """Value must fall inside [minimum, maximum]; None bounds are open."""
    reasons = []
    if minimum is not None and value < minimum:
        reasons.append(f"{label} {value} below minimum {minimum}")
    if maximum is not None and value > maximum:
        reasons.append(f"{label} {value} above maximum {maximum}")
    return RuleResult(
        passed=not reasons,
        rule_name=rule_name,
        message="; ".join(reasons) if reasons else f"{label} within limits",
        details={"value": value, "minimum": minimum, "maximum": maximum},
    )


# ---------------------------------------------------------------------------
# Rule composition
# ---------------------------------------------------------------------------

def evaluate_rules(*rules: RuleResult) -> RuleSetResult:
    """Compose multiple rule results into a single aggregate.

    Example::

        result = evaluate_rules(
            check_enabled(provider),
            check_range(amount, provider.min_amount, provider.max_amount),
        )
        if result.all_passed:
            candidates.append(provider)
    """
    return RuleSetResult(
        all_passed=all(r.passed for r in rules),
        results=list(rules),
    )


def filter_eligible(
    candidates: Sequence[Any],
    rules: Sequence[Rule],
    context: Any = None,
    name: Union[str, Callable[[Any], str]] = "name",
) -> tuple[list[Any], dict[str, list[str]]]:
    """Split candidates into (eligible, rejected) preserving input order.

    rejected maps candidate name -> failure messages.
    """
    eligible: list[Any] = []
    rejected: dict[str, list[str]] = {}
    for candidate in candidates:
        result = evaluate_rules(*(rule(candidate, context) for rule in rules))
        if result.all_passed:
            eligible.append(candidate)
        else:
            if callable(name):
                key = name(candidate)
            elif isinstance(candidate, dict):
                key = str(candidate[name])
            else:
                key = str(getattr(candidate, name))
            rejected[key] = [r.message for r in result.failed]
    return eligible, rejected
