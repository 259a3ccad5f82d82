"""Embedding and language-model providers plus configuration-driven factories."""
from __future__ import annotations

import logging

from pdfchat.settings import Settings

from .base import EmbeddingProvider, LLMProvider, invoke_provider
from .hashing import HashingEmbeddingProvider
from .mock_llm import MockLLMProvider

LOGGER = logging.getLogger(__name__)


def create_embedding_provider(settings: Settings) -> EmbeddingProvider:
    """Instantiate the embedding provider selected by ``EMBEDDING_PROVIDER``."""

    backend = settings.embedding_provider
    if backend == "hashing":
        return HashingEmbeddingProvider()
    if backend in {"sentence-transformers", "sentence_transformers"}:
        from .sentence_transformer import SentenceTransformerEmbeddingProvider

        return SentenceTransformerEmbeddingProvider(settings.embedding_model, device=settings.embedding_device)
    if backend == "openai":
        from .openai_provider import OpenAIEmbeddingProvider

        return OpenAIEmbeddingProvider(
            settings.embedding_model,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
        )
    raise ValueError(f"Unsupported embedding provider: {backend!r}")


def create_llm_provider(settings: Settings) -> LLMProvider:
    """Instantiate the language-model provider selected by ``LLM_PROVIDER``."""

    backend = settings.llm_provider
    if backend == "mock":
        LOGGER.warning("LLM_PROVIDER is 'mock'; answers are canned and not generated by a model.")
        return MockLLMProvider()
    if backend == "openai":
        from .openai_provider import OpenAIChatProvider

        return OpenAIChatProvider(
            settings.llm_model,
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
        )
    if backend == "transformers":
        from .transformers_llm import TransformersChatProvider

        return TransformersChatProvider(settings.llm_model, device=settings.llm_device)
    raise ValueError(f"Unsupported LLM provider: {backend!r}")


__all__ = [
    "EmbeddingProvider",
    "HashingEmbeddingProvider",
    "LLMProvider",
    "MockLLMProvider",
    "create_embedding_provider",
    "create_llm_provider",
    "invoke_provider",
]
