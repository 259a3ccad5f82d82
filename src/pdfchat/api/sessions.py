"""API router exposing upload, question and history endpoints for chat sessions."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from pydantic import BaseModel, Field

from pdfchat.errors import (
    DocumentParseError,
    DocumentTooLargeError,
    InitializationError,
    SessionNotFoundError,
    SynthesisError,
)
from pdfchat.models import SourceRef, Turn
from pdfchat.parsing import validate_pdf_upload
from pdfchat.service import PDFChatService

router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_chat_service(request: Request) -> PDFChatService:
    """FastAPI dependency returning the service attached to the application."""

    service: Optional[PDFChatService] = getattr(request.app.state, "chat_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Chat service is not initialised")
    return service


class SessionResponse(BaseModel):
    """Response body returned after a PDF upload."""

    session_id: str
    chunk_count: int
    page_count: int
    title: str | None = None
    author: str | None = None


class AskRequest(BaseModel):
    """Request body accepted by the ask endpoint."""

    question: str = Field(..., min_length=1, description="Question about the uploaded document.")
    level: str | None = Field(
        None,
        max_length=100,
        description="Audience the answer should be explained for, e.g. 'High Schooler'.",
    )


class SourceModel(BaseModel):
    """Chunk of the document the answer was grounded on."""

    text: str
    page_number: int | None = None


class AskResponse(BaseModel):
    """Response payload for the ask endpoint."""

    answer: str
    sources: list[SourceModel]


class MessageModel(BaseModel):
    role: str
    content: str
    sources: list[SourceModel] | None = None


class HistoryResponse(BaseModel):
    session_id: str
    messages: list[MessageModel]


class ClearResponse(BaseModel):
    cleared: bool


class DestroyResponse(BaseModel):
    destroyed: bool


def _serialise_sources(sources: tuple[SourceRef, ...] | None) -> list[SourceModel] | None:
    if sources is None:
        return None
    return [SourceModel(text=source.text, page_number=source.page_number) for source in sources]


def _serialise_turn(turn: Turn) -> MessageModel:
    return MessageModel(role=turn.role.value, content=turn.text, sources=_serialise_sources(turn.sources))


def _not_found(exc: SessionNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


@router.post("", response_model=SessionResponse)
async def upload_document(
    file: UploadFile = File(...),
    service: PDFChatService = Depends(get_chat_service),
) -> SessionResponse:
    """Upload a PDF and start a chat session over its contents."""

    try:
        if file.size is not None:
            validate_pdf_upload(file.content_type, file.size, max_bytes=service.max_upload_bytes)
        data = await file.read()
        summary = await service.create_session_from_pdf(data, file.content_type)
    except DocumentTooLargeError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    except DocumentParseError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except InitializationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return SessionResponse(
        session_id=summary.session_id,
        chunk_count=summary.chunk_count,
        page_count=summary.metadata.page_count,
        title=summary.metadata.title,
        author=summary.metadata.author,
    )


@router.post("/{session_id}/ask", response_model=AskResponse)
async def ask_question(
    session_id: str,
    request: AskRequest,
    service: PDFChatService = Depends(get_chat_service),
) -> AskResponse:
    """Answer a question using the session's document and conversation."""

    if not request.question.strip():
        raise HTTPException(status_code=422, detail="Question must not be empty")

    try:
        answer = await service.answer(session_id, request.question, request.level)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    except SynthesisError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return AskResponse(answer=answer.answer_text, sources=_serialise_sources(answer.sources) or [])


@router.get("/{session_id}/history", response_model=HistoryResponse)
async def get_history(
    session_id: str,
    service: PDFChatService = Depends(get_chat_service),
) -> HistoryResponse:
    try:
        turns = await service.history(session_id)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    return HistoryResponse(session_id=session_id, messages=[_serialise_turn(turn) for turn in turns])


@router.delete("/{session_id}/history", response_model=ClearResponse)
async def clear_history(
    session_id: str,
    service: PDFChatService = Depends(get_chat_service),
) -> ClearResponse:
    try:
        await service.clear(session_id)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    return ClearResponse(cleared=True)


@router.delete("/{session_id}", response_model=DestroyResponse)
async def destroy_session(
    session_id: str,
    service: PDFChatService = Depends(get_chat_service),
) -> DestroyResponse:
    """Release a session; destroying an unknown session is not an error."""

    return DestroyResponse(destroyed=await service.destroy_session(session_id))
