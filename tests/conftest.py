"""Shared fixtures: deterministic providers and ready-made registries."""
from __future__ import annotations

import asyncio
from typing import Callable, List, Sequence

import pytest

from pdfchat.indexer import EmbeddingIndexer
from pdfchat.models import PromptMessage
from pdfchat.providers import HashingEmbeddingProvider, LLMProvider, MockLLMProvider
from pdfchat.retriever import Retriever
from pdfchat.service import PDFChatService
from pdfchat.sessions import SessionRegistry
from pdfchat.synthesizer import AnswerSynthesizer


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeClock:
    """Manually advanced replacement for :func:`time.monotonic`."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingLLM(LLMProvider):
    """Return a fixed answer and remember every prompt it was given."""

    model_name = "recording"

    def __init__(self, answer: str = "Cats are mammals.") -> None:
        self.answer = answer
        self.calls: List[Sequence[PromptMessage]] = []

    def complete(self, messages, *, max_tokens, temperature):
        self.calls.append(list(messages))
        return self.answer


class FailingLLM(LLMProvider):
    model_name = "failing"

    def complete(self, messages, *, max_tokens, temperature):
        raise RuntimeError("model backend unavailable")


class SlowLLM(LLMProvider):
    model_name = "slow"

    async def complete(self, messages, *, max_tokens, temperature):
        await asyncio.sleep(5)
        return "too late"


@pytest.fixture
def embedding_provider() -> HashingEmbeddingProvider:
    return HashingEmbeddingProvider()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry_factory(embedding_provider) -> Callable[..., SessionRegistry]:
    def _factory(**kwargs) -> SessionRegistry:
        return SessionRegistry(EmbeddingIndexer(embedding_provider), **kwargs)

    return _factory


@pytest.fixture
def registry(registry_factory) -> SessionRegistry:
    return registry_factory()


@pytest.fixture
def recording_llm() -> RecordingLLM:
    return RecordingLLM()


@pytest.fixture
def synthesizer(recording_llm) -> AnswerSynthesizer:
    return AnswerSynthesizer(retriever=Retriever(), llm=recording_llm)


@pytest.fixture
def chat_service(registry, synthesizer) -> PDFChatService:
    return PDFChatService(registry=registry, synthesizer=synthesizer)


@pytest.fixture
def mock_service(registry) -> PDFChatService:
    return PDFChatService(
        registry=registry,
        synthesizer=AnswerSynthesizer(retriever=Retriever(), llm=MockLLMProvider()),
    )


def build_pdf(
    page_texts: Sequence[str],
    *,
    title: str | None = None,
    author: str | None = None,
    creation_date: str = "D:20240131120000+01'00'",
) -> bytes:
    """Assemble a minimal PDF with one Helvetica text line per page."""

    font_id = 3
    page_ids = [4 + 2 * index for index in range(len(page_texts))]
    info_id = 4 + 2 * len(page_texts)
    objects: dict[int, bytes] = {
        1: b"<< /Type /Catalog /Pages 2 0 R >>",
        2: b"<< /Type /Pages /Kids ["
        + b" ".join(b"%d 0 R" % page_id for page_id in page_ids)
        + b"] /Count %d >>" % len(page_ids),
        font_id: b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    }
    for page_id, text in zip(page_ids, page_texts):
        escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)").encode("latin-1")
        stream = b"BT /F1 12 Tf 72 720 Td (" + escaped + b") Tj ET" if text else b""
        objects[page_id] = (
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            b"/Resources << /Font << /F1 %d 0 R >> >> /Contents %d 0 R >>" % (font_id, page_id + 1)
        )
        objects[page_id + 1] = b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream"
    info = []
    if title:
        info.append(b"/Title (" + title.encode("latin-1") + b")")
    if author:
        info.append(b"/Author (" + author.encode("latin-1") + b")")
    info.append(b"/CreationDate (" + creation_date.encode("latin-1") + b")")
    objects[info_id] = b"<< " + b" ".join(info) + b" >>"

    output = bytearray(b"%PDF-1.4\n")
    offsets: dict[int, int] = {}
    for object_id in sorted(objects):
        offsets[object_id] = len(output)
        output += b"%d 0 obj\n" % object_id + objects[object_id] + b"\nendobj\n"
    xref_offset = len(output)
    size = max(objects) + 1
    output += b"xref\n0 %d\n" % size
    output += b"0000000000 65535 f \n"
    for object_id in range(1, size):
        output += b"%010d 00000 n \n" % offsets[object_id]
    output += b"trailer\n<< /Size %d /Root 1 0 R /Info %d 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        size,
        info_id,
        xref_offset,
    )
    return bytes(output)


@pytest.fixture
def cats_and_dogs_pdf() -> bytes:
    return build_pdf(["Cats are mammals.", "Dogs are mammals too."], title="Pets", author="Jane Doe")
