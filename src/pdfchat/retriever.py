"""Utilities for retrieving relevant context from a session index."""
from __future__ import annotations

import time
from typing import List, Optional, Tuple

import numpy as np

from pdfchat.errors import ProviderError
from pdfchat.indexer import EmbeddingIndex
from pdfchat.models import IndexedChunk
from pdfchat.providers.base import invoke_provider
from pdfchat.telemetry import emit_retriever_event

DEFAULT_TOP_K = 4


def _rank_key(item: Tuple[IndexedChunk, float]) -> tuple:
    entry, score = item
    page = entry.chunk.source_page
    return (-score, entry.chunk.sequence_index, page is not None, page or 0)


class Retriever:
    """Rank the chunks of an index against a question."""

    def __init__(self, *, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    async def retrieve_scored(
        self,
        index: EmbeddingIndex,
        query_text: str,
        k: int = DEFAULT_TOP_K,
    ) -> List[Tuple[IndexedChunk, float]]:
        """Return up to *k* ``(chunk, cosine similarity)`` pairs, best first.

        Ties are broken by ascending sequence index, then ascending page.
        """

        if k <= 0:
            return []

        started = time.perf_counter()
        embeddings = await invoke_provider(index.provider.encode, [query_text], timeout=self.timeout)
        try:
            vectors = np.asarray(embeddings, dtype=np.float64)
        except (TypeError, ValueError) as error:
            raise ProviderError("embedding provider returned a malformed query vector", cause=error) from error
        if vectors.ndim != 2 or vectors.shape[0] == 0:
            raise ProviderError(f"embedding provider returned no vector for the query (shape {vectors.shape})")
        try:
            scores = index.similarities(vectors[0])
        except ValueError as error:
            raise ProviderError(f"query embedding does not match the index: {error}", cause=error) from error

        ranked = sorted(zip(index.entries, (float(score) for score in scores)), key=_rank_key)[:k]
        emit_retriever_event(
            query=query_text,
            top_k=k,
            results=[
                {
                    "sequence_index": entry.chunk.sequence_index,
                    "page": entry.chunk.source_page,
                    "score": round(score, 6),
                }
                for entry, score in ranked
            ],
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return ranked

    async def retrieve(
        self,
        index: EmbeddingIndex,
        query_text: str,
        k: int = DEFAULT_TOP_K,
    ) -> List[IndexedChunk]:
        """Return the top matching chunks for the supplied question."""

        return [entry for entry, _ in await self.retrieve_scored(index, query_text, k)]


async def retrieve(index: EmbeddingIndex, query_text: str, k: int = DEFAULT_TOP_K) -> List[IndexedChunk]:
    """Rank *index* against *query_text* with the index's own embedding provider."""

    return await Retriever().retrieve(index, query_text, k)


__all__ = ["DEFAULT_TOP_K", "Retriever", "retrieve"]
