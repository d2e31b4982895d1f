"""Test multi-criteria scoring and eligibility rules."""
from dataclasses import dataclass

import pytest

from routekit.errors import ConfigurationError
from routekit.scoring import (
    Criterion,
    Direction,
    check_enabled,
    check_membership,
    check_range,
    evaluate_rules,
    filter_eligible,
    normalize,
    score_candidates,
    validate_criteria,
)


@dataclass
class Candidate:
    name: str
    cost: float = 1.0
    speed: float = 1.0
    priority: int = 0
    enabled: bool = True


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def test_normalize_maximize_and_minimize():
    assert normalize([1.0, 2.0, 3.0]) == [0.0, 0.5, 1.0]
    assert normalize([1.0, 2.0, 3.0], Direction.MINIMIZE) == [1.0, 0.5, 0.0]


def test_normalize_missing_is_worst():
    assert normalize([None, 5.0, 10.0]) == [0.0, 0.0, 1.0]
    assert normalize([None, 5.0, 10.0], Direction.MINIMIZE) == [0.0, 1.0, 0.0]


def test_normalize_no_spread():
    assert normalize([4.0, 4.0, 4.0]) == [1.0, 1.0, 1.0]
    assert normalize([None, None]) == [0.0, 0.0]


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def test_score_candidates_weighted_sum():
    candidates = [
        {"name": "a", "cost": 1, "speed": 10},
        {"name": "b", "cost": 2, "speed": 20},
        {"name": "c", "cost": 3, "speed": None},
    ]
    criteria = [
        Criterion(name="cost", weight=1.0, direction=Direction.MINIMIZE),
        Criterion(name="speed", weight=1.0),
    ]
    ranked = score_candidates(candidates, criteria)

    assert [r.name for r in ranked] == ["b", "a", "c"]
    assert ranked[0].score == pytest.approx(0.75)
    assert ranked[1].score == pytest.approx(0.5)
    assert ranked[2].score == pytest.approx(0.0)
    assert ranked[2].raw["speed"] is None


def test_breakdown_sums_to_score():
    candidates = [Candidate("x", cost=1, speed=3), Candidate("y", cost=4, speed=2)]
    criteria = [
        Criterion(name="cost", weight=3, direction=Direction.MINIMIZE),
        Criterion(name="speed", weight=1),
    ]
    for scored in score_candidates(candidates, criteria):
        assert sum(scored.breakdown.values()) == pytest.approx(scored.score)
        assert 0.0 <= scored.score <= 1.0


def test_ties_break_on_priority_then_name():
    candidates = [
        Candidate("zeta", priority=0),
        Candidate("beta", priority=5),
        Candidate("alpha", priority=0),
    ]
    ranked = score_candidates(candidates, [Criterion(name="cost", weight=1)])
    # All costs equal, so every score is 1.0
    assert all(r.score == 1.0 for r in ranked)
    assert [r.name for r in ranked] == ["beta", "alpha", "zeta"]


def test_callable_value_source():
    candidates = [Candidate("slow", speed=1), Candidate("fast", speed=9)]
    criteria = [Criterion(name="inverse", weight=1, value=lambda c: 1 / c.speed, direction=Direction.MINIMIZE)]
    ranked = score_candidates(candidates, criteria)
    assert ranked[0].name == "fast"
    assert ranked[0].candidate is candidates[1]


def test_empty_candidates():
    assert score_candidates([], [Criterion(name="cost", weight=1)]) == []


def test_validate_criteria_renormalizes():
    weights = validate_criteria([Criterion(name="a", weight=2), Criterion(name="b", weight=6)])
    assert weights == {"a": 0.25, "b": 0.75}


@pytest.mark.parametrize("criteria", [
    [Criterion(name="a", weight=1), Criterion(name="a", weight=1)],
    [Criterion(name="a", weight=-1), Criterion(name="b", weight=2)],
    [Criterion(name="a", weight=0)],
    [],
])
def test_validate_criteria_rejects(criteria):
    with pytest.raises(ConfigurationError):
        validate_criteria(criteria)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def test_check_membership():
    result = check_membership("INR", ["USD", "EUR"], "currency", "Currency")
    assert not result.passed
    assert result.message == "Currency INR not supported"

    result = check_membership("USD", ["USD", "EUR"], "currency", "Currency")
    assert result.passed
    assert result.message == "Currency USD supported"


def test_check_membership_empty_means_any():
    assert check_membership("BR", [], "country", "Country", empty_means_any=True).passed
    assert not check_membership("BR", [], "country", "Country").passed


def test_check_range():
    assert check_range(5, 1, 10).passed
    assert check_range(5, None, None).passed
    below = check_range(0.1, 1, 10, label="Amount")
    assert not below.passed
    assert "below minimum" in below.message
    above = check_range(11, 1, 10, label="Amount")
    assert "above maximum" in above.message


def test_evaluate_rules_aggregates():
    result = evaluate_rules(
        check_range(5, 1, 10),
        check_enabled(Candidate("off", enabled=False)),
    )
    assert not result.all_passed
    assert [r.rule_name for r in result.failed] == ["enabled"]


def test_filter_eligible_reports_rejections():
    candidates = [
        Candidate("cheap", cost=1),
        Candidate("pricey", cost=50),
        Candidate("off", cost=1, enabled=False),
    ]

    def check_budget(candidate, budget):
        return check_range(candidate.cost, maximum=budget, rule_name="budget", label="Cost")

    eligible, rejected = filter_eligible(candidates, [check_enabled, check_budget], context=10)

    assert [c.name for c in eligible] == ["cheap"]
    assert rejected["pricey"] == ["Cost 50 above maximum 10"]
    assert rejected["off"] == ["Disabled by configuration"]
