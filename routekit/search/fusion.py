"""
Routekit Rank Fusion

Combines ranked lists from several retrievers (dense, sparse, ...) into one.

- Reciprocal Rank Fusion: score(d) = sum_s  w_s / (k + rank_s(d))
  Rank-based, so raw score scales never need to agree.
- Weighted score fusion: per-source min-max normalization, then a weighted
  sum. Keeps score magnitudes but is sensitive to outliers.

Output order: fused score desc, then best rank asc, then id asc.
"""
from __future__ import annotations
from enum import Enum
from typing import Optional

from routekit.errors import ConfigurationError
from routekit.scoring.criteria import normalize
from routekit.search.models import SearchResult


class FusionMethod(str, Enum):
    RRF = "rrf"
    WEIGHTED = "weighted"


class _Accumulator:
    """Collects per-document fused state across sources."""

    def __init__(self):
        self.scores: dict[str, float] = {}
        self.best_rank: dict[str, int] = {}
        self.first_seen: dict[str, SearchResult] = {}
        self.sources: dict[str, list[str]] = {}

    def add(self, result: SearchResult, source: str, rank: int, contribution: float) -> None:
        seen_in = self.sources.setdefault(result.id, [])
        if source in seen_in:
            return  # duplicate id within one list: first occurrence counts
        seen_in.append(source)
        self.scores[result.id] = self.scores.get(result.id, 0.0) + contribution
        self.best_rank[result.id] = min(self.best_rank.get(result.id, rank), rank)
        self.first_seen.setdefault(result.id, result)

    def results(self, top_k: Optional[int]) -> list[SearchResult]:
        ordered = sorted(
            self.scores,
            key=lambda doc_id: (-self.scores[doc_id], self.best_rank[doc_id], doc_id),
        )
        if top_k is not None:
            ordered = ordered[:top_k]
        return [
            SearchResult(
                id=doc_id,
                content=self.first_seen[doc_id].content,
                score=self.scores[doc_id],
                source="fused",
                metadata={**self.first_seen[doc_id].metadata, "sources": list(self.sources[doc_id])},
            )
            for doc_id in ordered
        ]


def _weight(weights: Optional[dict[str, float]], source: str) -> float:
    if not weights:
        return 1.0
    weight = weights.get(source, 0.0)
    if weight < 0:
        raise ConfigurationError(f"Fusion weight for '{source}' is negative")
    return weight


def reciprocal_rank_fusion(
    ranked: dict[str, list[SearchResult]],
    weights: Optional[dict[str, float]] = None,
    k: int = 60,
    top_k: Optional[int] = None,
) -> list[SearchResult]:
    """Weighted Reciprocal Rank Fusion over any number of ranked lists."""
    if k <= 0:
        raise ConfigurationError(f"RRF constant k must be positive, got {k}")

    acc = _Accumulator()
    for source, results in ranked.items():
        w = _weight(weights, source)
        for rank, result in enumerate(results, start=1):
            acc.add(result, source, rank, w / (k + rank))
    return acc.results(top_k)


def weighted_score_fusion(
    ranked: dict[str, list[SearchResult]],
    weights: Optional[dict[str, float]] = None,
    top_k: Optional[int] = None,
) -> list[SearchResult]:
    """Min-max normalize each source's scores, then sum with weights."""
    acc = _Accumulator()
    for source, results in ranked.items():
        w = _weight(weights, source)
        normalized = normalize([r.score for r in results])
        for rank, (result, n) in enumerate(zip(results, normalized), start=1):
            acc.add(result, source, rank, w * n)
    return acc.results(top_k)


def fuse(
    method: FusionMethod | str,
    ranked: dict[str, list[SearchResult]],
    weights: Optional[dict[str, float]] = None,
    k: int = 60,
    top_k: Optional[int] = None,
) -> list[SearchResult]:
    """Dispatch to the configured fusion method."""
    method = FusionMethod(method)
    if method == FusionMethod.RRF:
        return reciprocal_rank_fusion(ranked, weights=weights, k=k, top_k=top_k)
    return weighted_score_fusion(ranked, weights=weights, top_k=top_k)
