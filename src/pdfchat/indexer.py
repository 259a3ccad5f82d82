"""Build in-memory similarity indexes over document chunks."""
from __future__ import annotations

import logging
import time
from typing import List, Optional, Sequence, Tuple

import numpy as np

from pdfchat.errors import IndexBuildError, ProviderError
from pdfchat.models import Chunk, IndexedChunk
from pdfchat.providers.base import EmbeddingProvider, invoke_provider
from pdfchat.telemetry import emit_index_event

LOGGER = logging.getLogger(__name__)


def _normalise_rows(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms[norms == 0.0] = 1.0
    return matrix / norms


class EmbeddingIndex:
    """Immutable exhaustive cosine-similarity index.

    The index remembers the provider that produced its vectors; queries must
    be embedded with that same provider.
    """

    def __init__(self, entries: Sequence[IndexedChunk], provider: EmbeddingProvider) -> None:
        if not entries:
            raise IndexBuildError("an index must contain at least one chunk")
        self._entries: Tuple[IndexedChunk, ...] = tuple(entries)
        matrix = np.asarray([entry.embedding for entry in self._entries], dtype=np.float64)
        self._matrix = _normalise_rows(matrix)
        self._matrix.setflags(write=False)
        self.provider = provider

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> Tuple[IndexedChunk, ...]:
        return self._entries

    @property
    def dimension(self) -> int:
        return int(self._matrix.shape[1])

    def similarities(self, query_embedding: Sequence[float]) -> np.ndarray:
        """Return the cosine similarity of *query_embedding* to every entry."""

        query = np.asarray(query_embedding, dtype=np.float64)
        if query.shape != (self.dimension,):
            raise ValueError(
                f"query embedding has dimension {query.shape}, index expects {self.dimension}"
            )
        norm = float(np.linalg.norm(query))
        if norm > 0.0:
            query = query / norm
        return self._matrix @ query


class EmbeddingIndexer:
    """Embed chunks through a provider and assemble an :class:`EmbeddingIndex`."""

    def __init__(self, provider: EmbeddingProvider, *, timeout: Optional[float] = None) -> None:
        self.provider = provider
        self.timeout = timeout

    async def build(self, chunks: Sequence[Chunk]) -> EmbeddingIndex:
        provider_name = getattr(self.provider, "name", type(self.provider).__name__)
        if not chunks:
            error = IndexBuildError("cannot build an index from an empty chunk set")
            emit_index_event(provider=provider_name, chunks=0, dimension=None, duration_ms=0.0, error=error)
            raise error

        started = time.perf_counter()
        try:
            vectors = await invoke_provider(
                self.provider.encode,
                [chunk.text for chunk in chunks],
                timeout=self.timeout,
            )
            embeddings = self._validate(vectors, len(chunks))
        except (ProviderError, IndexBuildError) as error:
            emit_index_event(
                provider=provider_name,
                chunks=len(chunks),
                dimension=None,
                duration_ms=(time.perf_counter() - started) * 1000.0,
                error=error,
            )
            if isinstance(error, IndexBuildError):
                raise
            raise IndexBuildError(f"embedding provider failed: {error}", cause=error) from error

        entries = [IndexedChunk(chunk=chunk, embedding=embedding) for chunk, embedding in zip(chunks, embeddings)]
        index = EmbeddingIndex(entries, self.provider)
        emit_index_event(
            provider=provider_name,
            chunks=len(entries),
            dimension=index.dimension,
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return index

    @staticmethod
    def _validate(vectors: object, expected: int) -> List[Tuple[float, ...]]:
        try:
            embeddings = [tuple(float(value) for value in vector) for vector in vectors]  # type: ignore[union-attr]
        except (TypeError, ValueError) as error:
            raise IndexBuildError("embedding provider returned malformed vectors", cause=error) from error
        if len(embeddings) != expected:
            raise IndexBuildError(
                f"embedding provider returned {len(embeddings)} vectors for {expected} chunks"
            )
        dimensions = {len(vector) for vector in embeddings}
        if len(dimensions) != 1 or 0 in dimensions:
            raise IndexBuildError(f"embedding provider returned inconsistent dimensions: {sorted(dimensions)}")
        return embeddings


__all__ = ["EmbeddingIndex", "EmbeddingIndexer"]
