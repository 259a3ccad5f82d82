"""Append-only conversation log kept per session."""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Tuple

from pdfchat.models import Role, Turn


class ConversationHistory:
    """Chronological record of turns.

    Turns are frozen; the log only grows by complete user/assistant exchanges
    and shrinks only through :meth:`clear`. Both mutations are serialised by
    a lock owned by the log.
    """

    def __init__(self) -> None:
        self._turns: List[Turn] = []
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._turns)

    def snapshot(self) -> Tuple[Turn, ...]:
        """Return a read-only copy of the turns in chronological order."""

        return tuple(self._turns)

    def recent(self, limit: int) -> Tuple[Turn, ...]:
        if limit <= 0:
            return ()
        return tuple(self._turns[-limit:])

    async def append_exchange(self, user_turn: Turn, assistant_turn: Turn) -> None:
        """Append a user turn immediately followed by its assistant reply."""

        if user_turn.role is not Role.USER:
            raise ValueError(f"expected a user turn, got {user_turn.role.value}")
        if assistant_turn.role is not Role.ASSISTANT:
            raise ValueError(f"expected an assistant turn, got {assistant_turn.role.value}")
        async with self._lock:
            self._turns.extend((user_turn, assistant_turn))

    async def clear(self) -> int:
        """Drop every turn and return how many were removed."""

        async with self._lock:
            removed = len(self._turns)
            self._turns.clear()
        return removed

    def to_records(self) -> List[Dict[str, Any]]:
        """Export turns as plain dictionaries for replay or debugging."""

        return [turn.to_dict() for turn in self._turns]


def history(session: Any) -> Tuple[Turn, ...]:
    """Return the chronological turns of *session*."""

    return session.history.snapshot()


async def clear(session: Any) -> int:
    """Truncate the history of *session*."""

    return await session.history.clear()


__all__ = ["ConversationHistory", "clear", "history"]
