"""
Routekit Hybrid Search — Dense + Sparse + Fusion

Three-stage retrieval:
1. Dense search (embedding cosine similarity, or an external vector store)
2. Sparse search (BM25 for exact terminology)
3. Fusion (weighted RRF by default, weighted score fusion optionally)

Tenant-aware: searches can be scoped by the tenant_id metadata field.
"""
from __future__ import annotations
from typing import Any, Optional

import numpy as np
from rank_bm25 import BM25Okapi

from routekit.config import SearchConfig
from routekit.observability import get_logger
from routekit.search.embeddings import Embedder, HashingEmbedder, tokenize
from routekit.search.fusion import FusionMethod, fuse
from routekit.search.models import HybridSearchResult, SearchResult

logger = get_logger(__name__)


class HybridSearchEngine:
    """
    Hybrid search combining dense embeddings + BM25 sparse retrieval.
    """

    def __init__(
        self,
        embedder: Optional[Embedder] = None,
        vector_store=None,
        k: int = 60,  # RRF constant
        dense_weight: float = 0.6,
        sparse_weight: float = 0.4,
        fusion: FusionMethod | str = FusionMethod.RRF,
        candidate_multiplier: int = 2,
    ):
        self.embedder = embedder or HashingEmbedder()
        self.vector_store = vector_store
        self.k = k
        self.dense_weight = dense_weight
        self.sparse_weight = sparse_weight
        self.fusion = FusionMethod(fusion)
        self.candidate_multiplier = max(1, candidate_multiplier)
        self._bm25_index: Optional[BM25Okapi] = None
        self._matrix: Optional[np.ndarray] = None
        self._corpus: list[dict] = []

    @classmethod
    def from_config(cls, config: SearchConfig, embedder: Optional[Embedder] = None) -> "HybridSearchEngine":
        return cls(
            embedder=embedder or HashingEmbedder(config.embedding_dim),
            k=config.rrf_k,
            dense_weight=config.dense_weight,
            sparse_weight=config.sparse_weight,
            fusion=config.fusion,
            candidate_multiplier=config.candidate_multiplier,
        )

    @property
    def document_count(self) -> int:
        return len(self._corpus)

    def index_documents(self, documents: list[dict]):
        """Build BM25 and dense indexes from {"id", "content", "metadata"} dicts."""
        corpus = []
        seen: set[str] = set()
        for i, doc in enumerate(documents):
            doc_id = str(doc.get("id", f"doc-{i}"))
            if doc_id in seen:
                raise ValueError(f"Duplicate document id: {doc_id}")
            seen.add(doc_id)
            corpus.append({
                "id": doc_id,
                "content": doc["content"],
                "metadata": dict(doc.get("metadata") or {}),
            })

        self._corpus = corpus
        tokenized = [tokenize(doc["content"]) for doc in corpus]
        # BM25Okapi divides by the average document length
        if any(tokenized):
            self._bm25_index = BM25Okapi(tokenized)
        else:
            self._bm25_index = None
        self._matrix = self.embedder.embed([doc["content"] for doc in corpus]) if corpus else None

        logger.info("search.indexed", documents=len(corpus))

    def add_documents(self, documents: list[dict]):
        """Append documents and rebuild both indexes."""
        self.index_documents(self._corpus + list(documents))

    async def search(
        self,
        query: str,
        tenant_id: Optional[str] = None,
        top_k: int = 10,
        method: FusionMethod | str | None = None,
        min_score: float = 0.0,
    ) -> HybridSearchResult:
        """Execute hybrid search: dense + sparse + fusion."""
        fusion = FusionMethod(method) if method else self.fusion

        if not query.strip() or top_k <= 0:
            return HybridSearchResult(
                query=query, results=[], dense_count=0, sparse_count=0,
                fused_count=0, tenant_id=tenant_id, method=fusion.value,
            )

        fetch = top_k * self.candidate_multiplier

        # Stage 1: Dense search (vector similarity)
        dense_results = await self._dense_search(query, tenant_id, top_k=fetch)

        # Stage 2: Sparse search (BM25)
        sparse_results = self._sparse_search(query, tenant_id, top_k=fetch)

        # Stage 3: Fusion
        fused = fuse(
            fusion,
            {"dense": dense_results, "sparse": sparse_results},
            weights={"dense": self.dense_weight, "sparse": self.sparse_weight},
            k=self.k,
        )
        fused = [r for r in fused if r.score >= min_score][:top_k]

        logger.debug(
            "search.completed",
            query_length=len(query),
            tenant_id=tenant_id,
            dense=len(dense_results),
            sparse=len(sparse_results),
            fused=len(fused),
            method=fusion.value,
        )

        return HybridSearchResult(
            query=query,
            results=fused,
            dense_count=len(dense_results),
            sparse_count=len(sparse_results),
            fused_count=len(fused),
            tenant_id=tenant_id,
            method=fusion.value,
        )

    def _in_tenant(self, doc: dict, tenant_id: Optional[str]) -> bool:
        return tenant_id is None or doc.get("metadata", {}).get("tenant_id") == tenant_id

    async def _dense_search(
        self, query: str, tenant_id: Optional[str], top_k: int
    ) -> list[SearchResult]:
        """Dense vector search via the embedder, or an external vector store."""
        if self.vector_store is not None:
            return self._vector_store_search(query, tenant_id, top_k)

        if self._matrix is None or not self._corpus:
            return []

        query_vector = self.embedder.embed([query])[0]
        similarities = self._matrix @ query_vector
        order = np.argsort(-similarities, kind="stable")

        search_results = []
        for i in order:
            similarity = float(similarities[i])
            if similarity <= 0:
                break
            doc = self._corpus[i]
            if not self._in_tenant(doc, tenant_id):
                continue
            search_results.append(SearchResult(
                id=doc["id"],
                content=doc["content"],
                score=similarity,
                source="dense",
                metadata=doc["metadata"],
            ))
            if len(search_results) >= top_k:
                break
        return search_results

    def _vector_store_search(
        self, query: str, tenant_id: Optional[str], top_k: int
    ) -> list[SearchResult]:
        """ChromaDB-style collection: query(query_texts, n_results, where)."""
        kwargs: dict[str, Any] = {"query_texts": [query], "n_results": top_k}
        if tenant_id is not None:
            kwargs["where"] = {"tenant_id": tenant_id}
        results = self.vector_store.query(**kwargs)

        search_results = []
        if results and results.get("documents"):
            distances = results["distances"][0] if results.get("distances") else None
            for i, doc in enumerate(results["documents"][0]):
                score = 1.0 - (distances[i] if distances else 0)
                if score <= 0:
                    continue
                search_results.append(SearchResult(
                    id=results["ids"][0][i] if results.get("ids") else f"dense-{i}",
                    content=doc,
                    score=score,
                    source="dense",
                    metadata=results["metadatas"][0][i] if results.get("metadatas") else {},
                ))
        return search_results

    def _sparse_search(
        self, query: str, tenant_id: Optional[str], top_k: int
    ) -> list[SearchResult]:
        """BM25 sparse search."""
        if not self._bm25_index or not self._corpus:
            return []

        tokenized_query = tokenize(query)
        if not tokenized_query:
            return []
        scores = self._bm25_index.get_scores(tokenized_query)

        scored_docs = [
            (i, float(score), doc)
            for i, (score, doc) in enumerate(zip(scores, self._corpus))
            if score > 0 and self._in_tenant(doc, tenant_id)
        ]
        # Sort by score descending, corpus order on ties
        scored_docs.sort(key=lambda x: (-x[1], x[0]))

        return [
            SearchResult(
                id=doc["id"],
                content=doc["content"],
                score=score,
                source="sparse",
                metadata=doc["metadata"],
            )
            for i, score, doc in scored_docs[:top_k]
        ]
