"""Base provider interfaces for embeddings and language models."""

from __future__ import annotations

import asyncio
import functools
import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Sequence, Union

from pdfchat.errors import ProviderError, ProviderTimeoutError
from pdfchat.models import PromptMessage

__all__ = ["EmbeddingProvider", "LLMProvider", "invoke_provider"]

Embeddings = List[List[float]]


class EmbeddingProvider(ABC):
    """Abstract interface for embedding providers.

    Implementations may define :meth:`encode` either as a regular method or as
    a coroutine; :func:`invoke_provider` handles both.
    """

    name: str = "embedding"

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of every vector returned by :meth:`encode`."""

    @abstractmethod
    def encode(self, texts: Sequence[str]) -> Union[Embeddings, Awaitable[Embeddings]]:
        """Encode the provided texts into embeddings."""


class LLMProvider(ABC):
    """Abstract interface for chat-style language model providers."""

    model_name: str = "llm"

    @abstractmethod
    def complete(
        self,
        messages: Sequence[PromptMessage],
        *,
        max_tokens: int,
        temperature: float,
    ) -> Union[str, Awaitable[str]]:
        """Return a single non-streaming completion for *messages*."""


async def invoke_provider(
    func: Callable[..., Any],
    *args: Any,
    timeout: float | None = None,
    **kwargs: Any,
) -> Any:
    """Call a provider method without blocking the event loop.

    Coroutine functions are awaited directly; synchronous callables run on a
    worker thread. Any failure is re-raised as :class:`ProviderError` and an
    expired *timeout* as :class:`ProviderTimeoutError`.
    """

    if inspect.iscoroutinefunction(func):
        awaitable = func(*args, **kwargs)
    else:
        awaitable = asyncio.to_thread(functools.partial(func, *args, **kwargs))

    try:
        result = await asyncio.wait_for(awaitable, timeout=timeout)
        if inspect.isawaitable(result):
            result = await asyncio.wait_for(result, timeout=timeout)
    except asyncio.TimeoutError as error:
        raise ProviderTimeoutError(f"provider call timed out after {timeout}s", cause=error) from error
    except ProviderError:
        raise
    except Exception as error:
        raise ProviderError(f"provider call failed: {error}", cause=error) from error
    return result
