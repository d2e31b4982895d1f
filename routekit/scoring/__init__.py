"""
Routekit Scoring — eligibility rules + weighted multi-criteria ranking.
"""
from routekit.scoring.criteria import (
    Criterion,
    Direction,
    ScoredCandidate,
    normalize,
    score_candidates,
    validate_criteria,
)
from routekit.scoring.rules import (
    RuleResult,
    RuleSetResult,
    check_enabled,
    check_membership,
    check_range,
    evaluate_rules,
    filter_eligible,
)

__all__ = [
    "Criterion",
    "Direction",
    "ScoredCandidate",
    "normalize",
    "score_candidates",
    "validate_criteria",
    "RuleResult",
    "RuleSetResult",
    "check_enabled",
    "check_membership",
    "check_range",
    "evaluate_rules",
    "filter_eligible",
]
