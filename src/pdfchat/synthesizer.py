"""Answer questions from a session's index with a single model call."""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from pdfchat.errors import ProviderError, SynthesisError
from pdfchat.models import Answer, Query, Role, SourceRef, Turn
from pdfchat.prompt_builder import PromptBuilder, render_messages
from pdfchat.providers.base import LLMProvider, invoke_provider
from pdfchat.retriever import DEFAULT_TOP_K, Retriever
from pdfchat.sessions import Session
from pdfchat.telemetry import (
    AUDIT_LOGGER,
    emit_exception,
    emit_inference_request,
    emit_inference_result,
    emit_prompt_event,
)

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class AnswerSynthesizer:
    """Retrieval, prompt composition and generation for one question.

    History is only touched after the model has produced a usable answer, and
    then the user turn and the assistant turn are appended together.
    """

    retriever: Retriever
    llm: LLMProvider
    prompt_builder: PromptBuilder = field(default_factory=PromptBuilder)
    top_k: int = DEFAULT_TOP_K
    max_tokens: int = 512
    temperature: float = 0.2
    timeout: Optional[float] = None
    history_turns: int = 6

    async def answer(self, session: Session, query: Query) -> Answer:
        req_id = uuid.uuid4().hex
        session_id = session.session_id

        try:
            ranked = await self.retriever.retrieve_scored(session.index, query.text, self.top_k)
        except ProviderError as error:
            emit_exception(module=f"{__name__}.retriever", error=error, req_id=req_id, session_id=session_id)
            raise SynthesisError("Failed to retrieve context for the question", cause=error) from error

        chunks = [entry.chunk for entry, _ in ranked]
        prior_turns = session.history.recent(self.history_turns)
        messages = self.prompt_builder.build(
            query.text,
            chunks,
            explanation_level=query.explanation_level,
            history=prior_turns,
        )
        if not chunks:
            LOGGER.info("No context retrieved for session %s; asking the model anyway", session_id)

        emit_prompt_event(
            session_id=session_id,
            explanation_level=query.explanation_level,
            context_chars=sum(len(chunk.text) for chunk in chunks),
            history_turns=len(prior_turns),
            sources=[chunk.source_page for chunk in chunks],
        )
        model_name = getattr(self.llm, "model_name", type(self.llm).__name__)
        prompt_preview = render_messages(messages)
        emit_inference_request(
            req_id=req_id,
            session_id=session_id,
            model=model_name,
            prompt_preview=prompt_preview,
            prompt_len=len(prompt_preview),
            top_k=self.top_k,
        )

        started = time.perf_counter()
        try:
            answer_text = await invoke_provider(
                self.llm.complete,
                messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                timeout=self.timeout,
            )
            if not isinstance(answer_text, str) or not answer_text.strip():
                raise ProviderError(f"language model returned an unusable completion: {answer_text!r}")
        except ProviderError as error:
            emit_inference_result(
                req_id=req_id,
                session_id=session_id,
                duration_ms=(time.perf_counter() - started) * 1000.0,
                model=model_name,
                answer_preview=None,
                error=error,
            )
            raise SynthesisError("Failed to generate an answer from the language model", cause=error) from error

        answer_text = answer_text.strip()
        emit_inference_result(
            req_id=req_id,
            session_id=session_id,
            duration_ms=(time.perf_counter() - started) * 1000.0,
            model=model_name,
            answer_preview=answer_text,
        )

        sources = tuple(SourceRef.from_chunk(chunk) for chunk in chunks)
        await session.history.append_exchange(
            Turn(role=Role.USER, text=query.text),
            Turn(role=Role.ASSISTANT, text=answer_text, sources=sources),
        )
        AUDIT_LOGGER.info(
            {
                "event": "answer",
                "session_id": session_id,
                "req_id": req_id,
                "question": query.text,
                "level": query.explanation_level,
                "source_pages": [source.page_number for source in sources],
            }
        )
        return Answer(answer_text=answer_text, sources=sources)


__all__ = ["AnswerSynthesizer"]
