"""Data models shared by the segmenter, index, sessions and synthesizer."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

DEFAULT_EXPLANATION_LEVEL = "High Schooler"


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True, slots=True)
class Page:
    """Text extracted from a single page of the source document."""

    page_number: int
    text: str

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {self.page_number}")


@dataclass(frozen=True, slots=True)
class DocumentMetadata:
    """Best-effort metadata reported by the parsing collaborator."""

    page_count: int = 0
    title: Optional[str] = None
    author: Optional[str] = None
    creation_date: Optional[datetime] = None
    info: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ParsedDocument:
    """Ordered pages of a document plus its metadata."""

    pages: Tuple[Page, ...]
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    full_text: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "pages", tuple(self.pages))
        previous = 0
        for page in self.pages:
            if page.page_number <= previous:
                raise ValueError(
                    "page numbers must be strictly increasing "
                    f"(page {page.page_number} follows {previous})"
                )
            previous = page.page_number

    @property
    def text(self) -> str:
        """Combined document text used when no page yields a chunk."""

        if self.full_text is not None:
            return self.full_text
        return " ".join(page.text for page in self.pages)

    @classmethod
    def from_texts(cls, texts: list[str], **kwargs: Any) -> "ParsedDocument":
        """Build a document from page texts numbered from 1."""

        pages = tuple(Page(page_number=index, text=text) for index, text in enumerate(texts, start=1))
        kwargs.setdefault("metadata", DocumentMetadata(page_count=len(pages)))
        return cls(pages=pages, **kwargs)


@dataclass(frozen=True, slots=True)
class Chunk:
    """A bounded slice of document text with its page provenance.

    ``source_page`` is ``None`` only for chunks cut from the combined document
    text when no individual page produced any text.
    """

    text: str
    source_page: Optional[int]
    sequence_index: int

    def __post_init__(self) -> None:
        if not self.text:
            raise ValueError("chunk text must not be empty")


@dataclass(frozen=True, slots=True)
class IndexedChunk:
    """Chunk paired with the embedding computed for it."""

    chunk: Chunk
    embedding: Tuple[float, ...]


@dataclass(frozen=True, slots=True)
class SourceRef:
    """Read-only copy of a retrieved chunk returned to callers."""

    text: str
    page_number: Optional[int] = None

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> "SourceRef":
        return cls(text=chunk.text, page_number=chunk.source_page)

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "page_number": self.page_number}


class Role(str, enum.Enum):
    """Author of a conversation turn."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True, slots=True)
class Turn:
    """One message in a session's conversation history."""

    role: Role
    text: str
    sources: Optional[Tuple[SourceRef, ...]] = None
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role.value,
            "content": self.text,
            "sources": [source.to_dict() for source in self.sources] if self.sources is not None else None,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class Query:
    """A question asked in a session together with the explanation register."""

    text: str
    explanation_level: str = DEFAULT_EXPLANATION_LEVEL

    def __post_init__(self) -> None:
        level = (self.explanation_level or "").strip()
        object.__setattr__(self, "explanation_level", level or DEFAULT_EXPLANATION_LEVEL)


@dataclass(frozen=True, slots=True)
class Answer:
    """Structured result returned from the synthesizer."""

    answer_text: str
    sources: Tuple[SourceRef, ...]


@dataclass(frozen=True, slots=True)
class PromptMessage:
    """Single chat message handed to a language-model provider."""

    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


__all__ = [
    "Answer",
    "Chunk",
    "DEFAULT_EXPLANATION_LEVEL",
    "DocumentMetadata",
    "IndexedChunk",
    "Page",
    "ParsedDocument",
    "PromptMessage",
    "Query",
    "Role",
    "SourceRef",
    "Turn",
]
