"""Exception hierarchy shared by the question-answering core."""
from __future__ import annotations


class PDFChatError(RuntimeError):
    """Base class for all errors raised by :mod:`pdfchat`."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class ProviderError(PDFChatError):
    """Raised when an embedding or language-model provider call fails."""


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds the configured timeout."""


class IndexBuildError(PDFChatError):
    """Raised when an embedding index cannot be built."""


class InitializationError(PDFChatError):
    """Raised when a chat session cannot be created from a parsed document."""


class SessionNotFoundError(PDFChatError):
    """Raised when a session id is unknown, destroyed or expired."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"Session '{session_id}' was not found. Upload the PDF again to start a new session."
        )
        self.session_id = session_id


class SynthesisError(PDFChatError):
    """Raised when an answer cannot be produced for a question."""


class DocumentParseError(PDFChatError):
    """Raised when an uploaded document cannot be read at all."""


class DocumentTooLargeError(DocumentParseError):
    """Raised when an upload exceeds the configured size limit."""


class SegmentationDegraded(UserWarning):
    """Page-level extraction produced no text; logged, never raised."""

    def __init__(self, page_number: int) -> None:
        super().__init__(f"page {page_number} has no extractable text")
        self.page_number = page_number


__all__ = [
    "DocumentParseError",
    "DocumentTooLargeError",
    "IndexBuildError",
    "InitializationError",
    "PDFChatError",
    "ProviderError",
    "ProviderTimeoutError",
    "SegmentationDegraded",
    "SessionNotFoundError",
    "SynthesisError",
]
