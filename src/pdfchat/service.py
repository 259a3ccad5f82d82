"""Caller-facing operations of the PDF question-answering core."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from pdfchat.indexer import EmbeddingIndexer
from pdfchat.models import Answer, DocumentMetadata, ParsedDocument, Query, Turn
from pdfchat.parsing import PDF_CONTENT_TYPE, PDFParser, validate_pdf_upload
from pdfchat.prompt_builder import PromptBuilder
from pdfchat.providers import EmbeddingProvider, LLMProvider, create_embedding_provider, create_llm_provider
from pdfchat.retriever import Retriever
from pdfchat.sessions import Session, SessionRegistry
from pdfchat.settings import DEFAULT_MAX_UPLOAD_BYTES, Settings, get_settings
from pdfchat.synthesizer import AnswerSynthesizer
from pdfchat.telemetry import traced_duration

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionSummary:
    """Structured result returned from :meth:`PDFChatService.create_session_from_pdf`."""

    session_id: str
    chunk_count: int
    metadata: DocumentMetadata


class PDFChatService:
    """Coordinate session lifecycle and question answering.

    The service owns its :class:`SessionRegistry`; callers create one service
    at startup, call :meth:`start`, and :meth:`stop` it at shutdown.
    """

    def __init__(
        self,
        *,
        registry: SessionRegistry,
        synthesizer: AnswerSynthesizer,
        parser: Optional[PDFParser] = None,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ) -> None:
        self.registry = registry
        self.synthesizer = synthesizer
        self.parser = parser or PDFParser()
        self.max_upload_bytes = max_upload_bytes

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        *,
        embedding_provider: Optional[EmbeddingProvider] = None,
        llm: Optional[LLMProvider] = None,
    ) -> "PDFChatService":
        """Wire providers, registry and synthesizer from configuration."""

        settings = settings or get_settings()
        embedding_provider = embedding_provider or create_embedding_provider(settings)
        llm = llm or create_llm_provider(settings)
        timeout = settings.provider_timeout_seconds

        registry = SessionRegistry(
            EmbeddingIndexer(embedding_provider, timeout=timeout),
            idle_ttl_seconds=settings.session_idle_ttl_seconds,
            max_sessions=settings.session_max_count,
            sweep_interval_seconds=settings.session_sweep_interval_seconds,
        )
        synthesizer = AnswerSynthesizer(
            retriever=Retriever(timeout=timeout),
            llm=llm,
            prompt_builder=PromptBuilder(),
            top_k=settings.top_k,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            timeout=timeout,
            history_turns=settings.history_prompt_turns,
        )
        LOGGER.info(
            "PDF chat service configured (embeddings=%s, llm=%s, top_k=%s)",
            getattr(embedding_provider, "name", type(embedding_provider).__name__),
            getattr(llm, "model_name", type(llm).__name__),
            settings.top_k,
        )
        return cls(registry=registry, synthesizer=synthesizer, max_upload_bytes=settings.max_upload_bytes)

    def start(self) -> None:
        self.registry.start()

    async def stop(self) -> None:
        await self.registry.stop()

    async def create_session(self, parsed_document: ParsedDocument) -> str:
        return await self.registry.create_session(parsed_document)

    async def create_session_from_pdf(self, data: bytes, content_type: Optional[str] = PDF_CONTENT_TYPE) -> SessionSummary:
        """Validate and parse PDF bytes off the event loop, then start a session."""

        validate_pdf_upload(content_type, len(data), max_bytes=self.max_upload_bytes)
        with traced_duration("pdf.parse", logger=LOGGER, size_bytes=len(data)):
            parsed = await asyncio.to_thread(self.parser.parse, data)
        session_id = await self.registry.create_session(parsed)
        session = await self.registry.get_session(session_id)
        return SessionSummary(session_id=session_id, chunk_count=session.chunk_count, metadata=parsed.metadata)

    async def get_session(self, session_id: str) -> Session:
        return await self.registry.get_session(session_id)

    async def answer(self, session_id: str, question: str, explanation_level: Optional[str] = None) -> Answer:
        session = await self.registry.get_session(session_id)
        query = Query(text=question) if explanation_level is None else Query(question, explanation_level)
        return await self.synthesizer.answer(session, query)

    async def history(self, session_id: str) -> Tuple[Turn, ...]:
        session = await self.registry.get_session(session_id)
        return session.history.snapshot()

    async def clear(self, session_id: str) -> int:
        session = await self.registry.get_session(session_id)
        return await session.history.clear()

    async def destroy_session(self, session_id: str) -> bool:
        return await self.registry.destroy_session(session_id)


__all__ = ["PDFChatService", "SessionSummary"]
