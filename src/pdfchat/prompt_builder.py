"""Utilities for constructing prompts for document question answering."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Sequence

from pdfchat.models import DEFAULT_EXPLANATION_LEVEL, Chunk, PromptMessage, Role, Turn

_PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"
_SYSTEM_PROMPT_PATH = _PROMPTS_DIR / "system.txt"
_USER_PROMPT_PATH = _PROMPTS_DIR / "user.md"

CONTEXT_SEPARATOR = "\n\n"


def _load_template(path: Path) -> str:
    """Read and trim the contents of a template file."""
    return path.read_text(encoding="utf-8").strip()


class PromptBuilder:
    """Compose the chat messages sent to the language model."""

    def __init__(self, system_text: str | None = None, user_template: str | None = None) -> None:
        self.system_text = system_text if system_text is not None else _load_template(_SYSTEM_PROMPT_PATH)
        self.user_template = user_template if user_template is not None else _load_template(_USER_PROMPT_PATH)

    @staticmethod
    def build_context(chunks: Iterable[Chunk]) -> str:
        """Join chunk texts in ranked order, separated by blank lines."""

        return CONTEXT_SEPARATOR.join(chunk.text for chunk in chunks)

    def build(
        self,
        question: str,
        chunks: Sequence[Chunk],
        *,
        explanation_level: str = DEFAULT_EXPLANATION_LEVEL,
        history: Sequence[Turn] = (),
    ) -> List[PromptMessage]:
        """Return the system message, prior turns and the final question message."""

        if question is None:
            raise ValueError("question must not be None")

        messages = [PromptMessage(role=Role.SYSTEM, content=self.system_text)]
        messages.extend(
            PromptMessage(role=turn.role, content=turn.text)
            for turn in history
            if turn.role in (Role.USER, Role.ASSISTANT)
        )
        user_block = self.user_template.format(
            context=self.build_context(chunks),
            question=question,
            level=explanation_level or DEFAULT_EXPLANATION_LEVEL,
        )
        messages.append(PromptMessage(role=Role.USER, content=user_block))
        return messages


def render_messages(messages: Sequence[PromptMessage]) -> str:
    """Flatten *messages* into a single string for logging previews."""

    return "\n\n".join(f"[{message.role.value}] {message.content}" for message in messages)


__all__ = ["CONTEXT_SEPARATOR", "PromptBuilder", "render_messages"]
