"""
Routekit Embeddings

The dense retriever only needs `embed(texts) -> (n, dim) array`. Plug in a
sentence-transformers model, a hosted embedding API, or the deterministic
HashingEmbedder below (feature hashing, no model download, stable across
processes).
"""
from __future__ import annotations
from typing import Protocol, Sequence
import hashlib
import re

import numpy as np

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def tokenize(text: str) -> list[str]:
    """Lowercase word tokens."""
    return _TOKEN_RE.findall(text.lower())


class Embedder(Protocol):
    dim: int

    def embed(self, texts: Sequence[str]) -> np.ndarray:
        ...


class HashingEmbedder:
    """Signed feature-hashing bag-of-words embedder.

    Each token hashes to a bucket and a sign; vectors are L2-normalized so a
    dot product is cosine similarity. Texts without tokens embed to zeros.
    """

    def __init__(self, dim: int = 256):
        if dim <= 0:
            raise ValueError(f"dim must be positive, got {dim}")
        self.dim = dim

    def _bucket(self, token: str) -> tuple[int, float]:
        digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
        h = int.from_bytes(digest, "big")
        sign = 1.0 if (h >> 63) & 1 == 0 else -1.0
        return h % self.dim, sign

    def embed(self, texts: Sequence[str]) -> np.ndarray:
        matrix = np.zeros((len(texts), self.dim), dtype=np.float32)
        for row, text in enumerate(texts):
            for token in tokenize(text):
                bucket, sign = self._bucket(token)
                matrix[row, bucket] += sign
        norms = np.linalg.norm(matrix, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        return matrix / norms
