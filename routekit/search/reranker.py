"""
Routekit Reranker — late-interaction style token coverage.

Used after hybrid search to promote results that cover more of the query's
terms. Fused scores are tiny (RRF ~ 1/60), so they are scaled to the batch
maximum before blending.
"""
from __future__ import annotations

from routekit.search.embeddings import tokenize
from routekit.search.models import RerankResult, SearchResult


class TokenOverlapReranker:
    """
    rerank_score = coverage_weight * (query tokens found in doc / query tokens)
                 + (1 - coverage_weight) * (score / max score in batch)
    """

    def __init__(self, coverage_weight: float = 0.6):
        if not 0.0 <= coverage_weight <= 1.0:
            raise ValueError("coverage_weight must be within [0, 1]")
        self.coverage_weight = coverage_weight

    def rerank(
        self,
        query: str,
        results: list[SearchResult],
        top_k: int = 5,
    ) -> list[RerankResult]:
        query_tokens = set(tokenize(query))
        max_score = max((r.score for r in results), default=0.0)

        scored = []
        for position, result in enumerate(results):
            doc_tokens = set(tokenize(result.content))
            coverage = len(query_tokens & doc_tokens) / len(query_tokens) if query_tokens else 0.0
            scaled = result.score / max_score if max_score > 0 else 0.0
            score = self.coverage_weight * coverage + (1 - self.coverage_weight) * scaled
            scored.append((result, min(max(score, 0.0), 1.0), position))

        scored.sort(key=lambda x: (-x[1], x[2]))

        return [
            RerankResult(
                original=result,
                rerank_score=score,
                rank=i + 1,
                method="token_overlap",
            )
            for i, (result, score, _) in enumerate(scored[:top_k])
        ]
