"""Per-document chat sessions and the registry that owns them."""
from __future__ import annotations

import asyncio
import contextlib
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from pdfchat.errors import IndexBuildError, InitializationError, SessionNotFoundError
from pdfchat.history import ConversationHistory
from pdfchat.indexer import EmbeddingIndex, EmbeddingIndexer
from pdfchat.models import DocumentMetadata, ParsedDocument
from pdfchat.segmenter import DocumentSegmenter
from pdfchat.telemetry import emit_exception, emit_session_event

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Session:
    """Binds one document index to one conversation history."""

    session_id: str
    index: EmbeddingIndex
    metadata: DocumentMetadata
    created_at: float
    last_accessed: float
    history: ConversationHistory = field(default_factory=ConversationHistory)

    @property
    def chunk_count(self) -> int:
        return len(self.index)


class SessionRegistry:
    """Process-wide map of live sessions, constructed and owned by the service.

    The internal lock only guards dictionary updates; segmenting, embedding
    and answering happen outside it so unrelated sessions never wait on each
    other. Sessions idle for longer than ``idle_ttl_seconds`` expire, and when
    ``max_sessions`` is set the least recently used sessions are evicted.
    """

    def __init__(
        self,
        indexer: EmbeddingIndexer,
        *,
        segmenter: Optional[DocumentSegmenter] = None,
        idle_ttl_seconds: float = 0.0,
        max_sessions: int = 0,
        sweep_interval_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.indexer = indexer
        self.segmenter = segmenter or DocumentSegmenter()
        self.idle_ttl_seconds = idle_ttl_seconds
        self.max_sessions = max_sessions
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = asyncio.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    async def create_session(self, parsed_document: ParsedDocument) -> str:
        """Segment and index *parsed_document*, then register a new session."""

        chunks = self.segmenter.segment(parsed_document.pages, fallback_text=parsed_document.text)
        try:
            index = await self.indexer.build(chunks)
        except IndexBuildError as error:
            emit_exception(module=__name__, error=error, suggestion="check that the PDF contains extractable text")
            raise InitializationError(f"Failed to initialize chat session: {error}", cause=error) from error

        now = self._clock()
        session = Session(
            session_id=uuid.uuid4().hex,
            index=index,
            metadata=parsed_document.metadata,
            created_at=now,
            last_accessed=now,
        )
        async with self._lock:
            self._sessions[session.session_id] = session
            evicted = self._evict_over_capacity(keep=session.session_id)

        for session_id in evicted:
            emit_session_event("session.evict", session_id=session_id, reason="capacity")
        emit_session_event(
            "session.create",
            session_id=session.session_id,
            chunks=session.chunk_count,
            pages=len(parsed_document.pages),
            title=parsed_document.metadata.title,
        )
        return session.session_id

    async def get_session(self, session_id: str) -> Session:
        """Return the live session for *session_id* and mark it as used."""

        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            now = self._clock()
            if self._is_expired(session, now):
                del self._sessions[session_id]
                expired = True
            else:
                session.last_accessed = now
                expired = False

        if expired:
            emit_session_event("session.expire", session_id=session_id)
            raise SessionNotFoundError(session_id)
        return session

    async def destroy_session(self, session_id: str) -> bool:
        """Remove *session_id*; returns ``False`` when it was already gone."""

        async with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            emit_session_event("session.destroy", session_id=session_id)
        return removed is not None

    async def evict_expired(self) -> List[str]:
        """Drop every session idle for longer than the TTL."""

        if self.idle_ttl_seconds <= 0:
            return []
        async with self._lock:
            now = self._clock()
            expired = [sid for sid, session in self._sessions.items() if self._is_expired(session, now)]
            for session_id in expired:
                del self._sessions[session_id]
        for session_id in expired:
            emit_session_event("session.expire", session_id=session_id)
        return expired

    async def clear(self) -> None:
        async with self._lock:
            self._sessions.clear()

    def start(self) -> None:
        """Start the background task that expires idle sessions."""

        if self.idle_ttl_seconds <= 0 or self._sweeper is not None:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def stop(self) -> None:
        """Stop the sweeper and drop every session."""

        sweeper, self._sweeper = self._sweeper, None
        if sweeper is not None:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
        await self.clear()

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_seconds)
            try:
                await self.evict_expired()
            except Exception as error:  # pragma: no cover - keep sweeping
                LOGGER.exception("Session sweep failed")
                emit_exception(module=__name__, error=error)

    def _is_expired(self, session: Session, now: float) -> bool:
        return self.idle_ttl_seconds > 0 and now - session.last_accessed > self.idle_ttl_seconds

    def _evict_over_capacity(self, *, keep: str) -> List[str]:
        if self.max_sessions <= 0 or len(self._sessions) <= self.max_sessions:
            return []
        candidates = sorted(
            (session for session in self._sessions.values() if session.session_id != keep),
            key=lambda session: session.last_accessed,
        )
        evicted: List[str] = []
        for session in candidates[: len(self._sessions) - self.max_sessions]:
            del self._sessions[session.session_id]
            evicted.append(session.session_id)
        return evicted


__all__ = ["Session", "SessionRegistry"]
