"""Centralised observability helpers for structured lifecycle logging."""

from __future__ import annotations

import logging
import time
import traceback
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional

from pdfchat.logging_config import AUDIT_LOGGER_NAME

LOGGER = logging.getLogger("pdfchat.telemetry")
AUDIT_LOGGER = logging.getLogger(AUDIT_LOGGER_NAME)

_PREVIEW_CHARS = 120


def _format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(error.__class__, error, error.__traceback__))


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    session_id: str | None = None,
    req_id: str | None = None,
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Emit a structured log event with the agreed-upon schema."""

    logger = logger or LOGGER
    event: dict[str, Any] = {"step": step, "module": logger.name}
    if req_id:
        event["req_id"] = req_id
    if session_id:
        event["session_id"] = session_id
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    event.update(payload)

    if exc is not None:
        if isinstance(exc, BaseException):
            event["exc"] = _format_exception(exc).strip() if exc.__traceback__ else repr(exc)
        else:
            event["exc"] = str(exc)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(event)


def emit_embeddings_event(
    *, provider: str, count: int, duration_ms: float, errors: list[str] | None = None
) -> None:
    details = {
        "provider": provider,
        "count": count,
        "errors": errors or [],
        "per_item_ms": round(duration_ms / count, 3) if count else None,
    }
    level = "error" if errors else "info"
    log_event(LOGGER, "embeddings.compute", level=level, duration_ms=duration_ms, details=details)


def emit_index_event(
    *,
    provider: str,
    chunks: int,
    dimension: int | None,
    duration_ms: float,
    error: BaseException | None = None,
) -> None:
    details = {"provider": provider, "chunks": chunks, "dimension": dimension}
    level = "error" if error else "info"
    log_event(LOGGER, "index.build", level=level, duration_ms=duration_ms, details=details, exc=error)


def emit_segmentation_event(
    *,
    pages: int,
    chunks: int,
    degraded_pages: list[int],
    used_fallback: bool,
) -> None:
    details = {
        "pages": pages,
        "chunks": chunks,
        "degraded_pages": degraded_pages,
        "used_fallback": used_fallback,
    }
    log_event(LOGGER, "segment.document", details=details)


def emit_retriever_event(
    *,
    query: str,
    top_k: int,
    results: list[dict[str, Any]],
    duration_ms: float,
) -> None:
    details = {
        "query_preview": query[:_PREVIEW_CHARS],
        "top_k": top_k,
        "results": results,
    }
    log_event(LOGGER, "retriever.search", duration_ms=duration_ms, details=details)


def emit_prompt_event(
    *,
    session_id: str,
    explanation_level: str,
    context_chars: int,
    history_turns: int,
    sources: Iterable[int | None],
) -> None:
    details = {
        "explanation_level": explanation_level,
        "context_chars": context_chars,
        "history_turns": history_turns,
        "source_pages": list(sources),
    }
    log_event(LOGGER, "prompt.compose", session_id=session_id, details=details)


def emit_inference_request(
    *,
    req_id: str,
    session_id: str,
    model: str,
    prompt_preview: str,
    prompt_len: int,
    top_k: int,
) -> None:
    details = {
        "model": model,
        "prompt_preview": prompt_preview[:_PREVIEW_CHARS],
        "prompt_len": prompt_len,
        "top_k": top_k,
    }
    log_event(LOGGER, "inference.request", req_id=req_id, session_id=session_id, details=details)


def emit_inference_result(
    *,
    req_id: str,
    session_id: str,
    duration_ms: float,
    model: str,
    answer_preview: str | None,
    error: BaseException | None = None,
) -> None:
    details = {
        "model": model,
        "answer_preview": (answer_preview or "")[:_PREVIEW_CHARS],
    }
    level = "error" if error else "info"
    log_event(
        LOGGER,
        "inference.result",
        level=level,
        req_id=req_id,
        session_id=session_id,
        duration_ms=duration_ms,
        details=details,
        exc=error,
    )


def emit_session_event(step: str, *, session_id: str, **details: Any) -> None:
    """Record a session lifecycle event on both the telemetry and audit trails."""

    log_event(LOGGER, step, session_id=session_id, details=details or None)
    AUDIT_LOGGER.info({"event": step, "session_id": session_id, **details})


def emit_exception(
    *,
    module: str,
    error: BaseException,
    req_id: str | None = None,
    session_id: str | None = None,
    suggestion: str | None = None,
) -> None:
    details = {"module": module}
    if suggestion:
        details["suggestion"] = suggestion
    log_event(
        LOGGER,
        "exception",
        level="error",
        req_id=req_id,
        session_id=session_id,
        details=details,
        exc=error,
    )


@contextmanager
def traced_duration(step: str, *, logger: Optional[logging.Logger] = None, **fields: Any) -> Iterator[None]:
    start = time.perf_counter()
    log_event(logger or LOGGER, f"{step}.start", details=fields)
    try:
        yield
    except Exception as error:
        log_event(logger or LOGGER, f"{step}.error", level="error", details=fields, exc=error)
        raise
    finally:
        end = time.perf_counter()
        log_event(
            logger or LOGGER,
            f"{step}.complete",
            duration_ms=(end - start) * 1000.0,
            details=fields,
        )


__all__ = [
    "emit_embeddings_event",
    "emit_exception",
    "emit_index_event",
    "emit_inference_request",
    "emit_inference_result",
    "emit_prompt_event",
    "emit_retriever_event",
    "emit_segmentation_event",
    "emit_session_event",
    "log_event",
    "traced_duration",
]
