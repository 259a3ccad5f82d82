"""Dependency-light embedding provider based on feature hashing."""
from __future__ import annotations

import hashlib
import re
from typing import List, Sequence

import numpy as np

from .base import EmbeddingProvider

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


class HashingEmbeddingProvider(EmbeddingProvider):
    """Map each text to a normalised bag-of-words vector of fixed size.

    Tokens are lower-cased word characters hashed with BLAKE2b, so identical
    texts always produce identical vectors across processes.
    """

    name = "hashing"

    def __init__(self, dimension: int = 512) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be a positive integer")
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    def encode(self, texts: Sequence[str]) -> List[List[float]]:
        return [self._embed(str(text)) for text in texts]

    def _embed(self, text: str) -> List[float]:
        vector = np.zeros(self._dimension, dtype=np.float64)
        for token in _TOKEN_RE.findall(text.lower()):
            digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
            vector[int.from_bytes(digest, "big") % self._dimension] += 1.0
        norm = float(np.linalg.norm(vector))
        if norm > 0.0:
            vector /= norm
        return vector.tolist()
