"""Embedding provider backed by Sentence Transformers."""
from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import List, Optional, Sequence

from sentence_transformers import SentenceTransformer

from pdfchat.telemetry import emit_embeddings_event

from .base import EmbeddingProvider

DEFAULT_MODEL_NAME = "sentence-transformers/all-MiniLM-L6-v2"

LOGGER = logging.getLogger(__name__)


@lru_cache()
def _load_model(model_name: str, device: Optional[str]) -> SentenceTransformer:
    LOGGER.info("Loading sentence-transformers model %s (device=%s)", model_name, device or "auto")
    return SentenceTransformer(model_name, device=device)


class SentenceTransformerEmbeddingProvider(EmbeddingProvider):
    """Wrapper around a SentenceTransformer model.

    Models are loaded once per ``(model, device)`` pair and shared between
    providers, so sessions built with the same configuration embed into the
    same vector space.
    """

    def __init__(self, model_name: str | None = None, *, device: str | None = None) -> None:
        self._model_name = model_name or DEFAULT_MODEL_NAME
        self._model = _load_model(self._model_name, device)
        self._dimension = int(self._model.get_sentence_embedding_dimension())
        self.name = f"sentence-transformers:{self._model_name}"

    @property
    def dimension(self) -> int:
        return self._dimension

    def encode(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        started = time.perf_counter()
        try:
            embeddings = self._model.encode(
                list(texts),
                convert_to_numpy=True,
                show_progress_bar=False,
                normalize_embeddings=True,
            )
        except Exception as error:
            emit_embeddings_event(
                provider=self.name,
                count=len(texts),
                duration_ms=(time.perf_counter() - started) * 1000.0,
                errors=[str(error)],
            )
            raise

        emit_embeddings_event(
            provider=self.name,
            count=len(texts),
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return embeddings.tolist()


def reset_model_cache() -> None:
    """Drop loaded models (primarily for testing)."""

    _load_model.cache_clear()  # type: ignore[attr-defined]
