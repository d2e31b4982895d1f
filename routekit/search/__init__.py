"""
Routekit Search — hybrid dense + sparse retrieval with rank fusion.
"""
from routekit.search.embeddings import Embedder, HashingEmbedder, tokenize
from routekit.search.fusion import (
    FusionMethod,
    fuse,
    reciprocal_rank_fusion,
    weighted_score_fusion,
)
from routekit.search.hybrid_search import HybridSearchEngine
from routekit.search.models import HybridSearchResult, RerankResult, SearchResult
from routekit.search.reranker import TokenOverlapReranker

__all__ = [
    "Embedder",
    "HashingEmbedder",
    "tokenize",
    "FusionMethod",
    "fuse",
    "reciprocal_rank_fusion",
    "weighted_score_fusion",
    "HybridSearchEngine",
    "HybridSearchResult",
    "RerankResult",
    "SearchResult",
    "TokenOverlapReranker",
]
