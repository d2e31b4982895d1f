"""Search result models shared by the engine, fusion and reranker."""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional


class SearchResult(BaseModel):
    """Single search result with score and metadata."""
    id: str
    content: str
    score: float
    source: str  # dense | sparse | fused
    metadata: dict = Field(default_factory=dict)


class HybridSearchResult(BaseModel):
    """Combined search results with fusion scores."""
    query: str
    results: list[SearchResult]
    dense_count: int
    sparse_count: int
    fused_count: int
    tenant_id: Optional[str] = None
    method: str = "rrf"


class RerankResult(BaseModel):
    """Reranked search result with updated score."""
    original: SearchResult
    rerank_score: float = Field(ge=0.0, le=1.0)
    rank: int
    method: str
