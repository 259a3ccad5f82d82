"""OpenAI-compatible chat and embedding providers."""
from __future__ import annotations

import logging
import time
from typing import List, Optional, Sequence

from openai import AsyncOpenAI

from pdfchat.models import PromptMessage
from pdfchat.telemetry import emit_embeddings_event

from .base import EmbeddingProvider, LLMProvider

LOGGER = logging.getLogger(__name__)

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
_EMBEDDING_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}
_EMBEDDING_BATCH_SIZE = 100


def _build_client(api_key: Optional[str], base_url: Optional[str]) -> AsyncOpenAI:
    kwargs = {}
    if api_key:
        kwargs["api_key"] = api_key
    if base_url:
        kwargs["base_url"] = base_url
    return AsyncOpenAI(**kwargs)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embed texts with the OpenAI embeddings endpoint."""

    def __init__(
        self,
        model: str | None = None,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._model = model or DEFAULT_EMBEDDING_MODEL
        self._client = client or _build_client(api_key, base_url)
        self._dimension = _EMBEDDING_DIMENSIONS.get(self._model, 0)
        self.name = f"openai:{self._model}"

    @property
    def dimension(self) -> int:
        return self._dimension

    async def encode(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        started = time.perf_counter()
        embeddings: List[List[float]] = []
        try:
            for offset in range(0, len(texts), _EMBEDDING_BATCH_SIZE):
                batch = list(texts[offset : offset + _EMBEDDING_BATCH_SIZE])
                response = await self._client.embeddings.create(model=self._model, input=batch)
                embeddings.extend(list(item.embedding) for item in response.data)
        except Exception as error:
            emit_embeddings_event(
                provider=self.name,
                count=len(texts),
                duration_ms=(time.perf_counter() - started) * 1000.0,
                errors=[str(error)],
            )
            raise

        if embeddings and not self._dimension:
            self._dimension = len(embeddings[0])
        emit_embeddings_event(
            provider=self.name,
            count=len(texts),
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return embeddings


class OpenAIChatProvider(LLMProvider):
    """Single-shot chat completions against an OpenAI-compatible API."""

    def __init__(
        self,
        model: str = "gpt-4o",
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.model_name = model
        self._client = client or _build_client(api_key, base_url)

    async def complete(
        self,
        messages: Sequence[PromptMessage],
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        response = await self._client.chat.completions.create(
            model=self.model_name,
            messages=[message.to_dict() for message in messages],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        if not response.choices:
            raise ValueError("completion response contained no choices")
        content = response.choices[0].message.content
        if response.usage is not None:
            LOGGER.debug(
                "OpenAI usage: prompt=%s completion=%s",
                response.usage.prompt_tokens,
                response.usage.completion_tokens,
            )
        return content
