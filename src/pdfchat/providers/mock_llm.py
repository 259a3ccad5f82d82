"""Mock LLM provider that echoes prompts for deterministic testing."""
from __future__ import annotations

from typing import Sequence

from pdfchat.models import PromptMessage

from .base import LLMProvider


class MockLLMProvider(LLMProvider):
    """Return a deterministic response for any prompt."""

    model_name = "mock"

    def complete(
        self,
        messages: Sequence[PromptMessage],
        *,
        max_tokens: int = 256,
        temperature: float = 0.0,
    ) -> str:
        """Generate a canned response with a predictable prefix."""

        del max_tokens, temperature  # Unused in the mock implementation.
        prompt = messages[-1].content if messages else ""
        return f"MOCK_ANSWER: {prompt[:100]}"
