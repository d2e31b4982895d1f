"""
Routekit Multi-Criteria Scoring

Ranks candidates (payment providers, notification channels, ...) by a
weighted sum of min-max normalized criteria:

    score(c) = sum_i  w_i * n_i(c)      with sum_i w_i = 1

n_i is 1.0 for the best candidate on criterion i and 0.0 for the worst.
Missing values are treated as worst. Ties break on priority, then name,
so rankings are deterministic.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Sequence, Union

from routekit.errors import ConfigurationError


class Direction(str, Enum):
    MAXIMIZE = "maximize"
    MINIMIZE = "minimize"


ValueSource = Union[str, Callable[[Any], Optional[float]]]


@dataclass(frozen=True)
class Criterion:
    """One scoring dimension.

    value is an attribute/key name or a callable returning the raw value.
    Defaults to the criterion name.
    """
    name: str
    weight: float
    direction: Direction = Direction.MAXIMIZE
    value: Optional[ValueSource] = None

    def extract(self, candidate: Any) -> Optional[float]:
        if callable(self.value):
            raw = self.value(candidate)
        else:
            key = self.value or self.name
            if isinstance(candidate, dict):
                raw = candidate.get(key)
            else:
                raw = getattr(candidate, key, None)
        if raw is None:
            return None
        return float(raw)


@dataclass
class ScoredCandidate:
    """A candidate with its total score and per-criterion contributions."""
    name: str
    score: float
    breakdown: dict[str, float] = field(default_factory=dict)
    raw: dict[str, Optional[float]] = field(default_factory=dict)
    priority: int = 0
    candidate: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "score": round(self.score, 6),
            "breakdown": {k: round(v, 6) for k, v in self.breakdown.items()},
            "raw": self.raw,
            "priority": self.priority,
        }


def normalize(values: Sequence[Optional[float]], direction: Direction = Direction.MAXIMIZE) -> list[float]:
    """Min-max normalize to [0, 1]; None maps to 0.0 (worst)."""
    present = [v for v in values if v is not None]
    if not present:
        return [0.0 for _ in values]

    lo, hi = min(present), max(present)
    normalized = []
    for v in values:
        if v is None:
            normalized.append(0.0)
        elif hi == lo:
            # No spread: nobody is worse than anybody else
            normalized.append(1.0)
        else:
            n = (v - lo) / (hi - lo)
            normalized.append(1.0 - n if direction == Direction.MINIMIZE else n)
    return normalized


def validate_criteria(criteria: Sequence[Criterion]) -> dict[str, float]:
    """Check criteria and return weights renormalized to sum to 1."""
    names = [c.name for c in criteria]
    if len(set(names)) != len(names):
        raise ConfigurationError(f"Duplicate criterion names: {names}")
    for c in criteria:
        if c.weight < 0:
            raise ConfigurationError(f"Criterion '{c.name}' has negative weight {c.weight}")
    total = sum(c.weight for c in criteria)
    if total <= 0:
        raise ConfigurationError("At least one criterion must have a positive weight")
    return {c.name: c.weight / total for c in criteria}


def _attr(candidate: Any, source: Union[str, Callable[[Any], Any]], default: Any) -> Any:
    if callable(source):
        return source(candidate)
    if isinstance(candidate, dict):
        return candidate.get(source, default)
    return getattr(candidate, source, default)


def score_candidates(
    candidates: Sequence[Any],
    criteria: Sequence[Criterion],
    name: Union[str, Callable[[Any], str]] = "name",
    priority: Union[str, Callable[[Any], int]] = "priority",
) -> list[ScoredCandidate]:
    """Score and rank candidates, best first."""
    weights = validate_criteria(criteria)
    if not candidates:
        return []

    raw_by_criterion: dict[str, list[Optional[float]]] = {
        c.name: [c.extract(cand) for cand in candidates] for c in criteria
    }
    norm_by_criterion = {
        c.name: normalize(raw_by_criterion[c.name], c.direction) for c in criteria
    }

    scored = []
    for i, cand in enumerate(candidates):
        breakdown = {
            c.name: weights[c.name] * norm_by_criterion[c.name][i] for c in criteria
        }
        scored.append(ScoredCandidate(
            name=str(_attr(cand, name, f"candidate-{i}")),
            score=sum(breakdown.values()),
            breakdown=breakdown,
            raw={c.name: raw_by_criterion[c.name][i] for c in criteria},
            priority=int(_attr(cand, priority, 0) or 0),
            candidate=cand,
        ))

    scored.sort(key=lambda s: (-s.score, -s.priority, s.name))
    return scored
