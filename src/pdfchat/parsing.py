"""PDF text extraction producing page-segmented documents."""
from __future__ import annotations

import io
import logging
from datetime import datetime
from typing import Dict, List, Optional

from pypdf import DocumentInformation, PdfReader
from pypdf.errors import PdfReadError

from pdfchat.errors import DocumentParseError, DocumentTooLargeError
from pdfchat.models import DocumentMetadata, Page, ParsedDocument
from pdfchat.settings import DEFAULT_MAX_UPLOAD_BYTES

LOGGER = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def validate_pdf_upload(
    content_type: Optional[str],
    size: int,
    *,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> None:
    """Reject uploads that are not PDFs or exceed *max_bytes*."""

    if (content_type or "").split(";")[0].strip().lower() != PDF_CONTENT_TYPE:
        raise DocumentParseError(f"Only PDF uploads are supported (got {content_type or 'unknown type'})")
    if size <= 0:
        raise DocumentParseError("The uploaded file is empty")
    if size > max_bytes:
        raise DocumentTooLargeError(f"The uploaded file exceeds the {max_bytes // (1024 * 1024)} MB limit")


def _creation_date(info: DocumentInformation) -> Optional[datetime]:
    try:
        return info.creation_date
    except ValueError as error:
        LOGGER.warning("Ignoring malformed PDF creation date: %s", error)
        return None


class PDFParser:
    """Extract per-page text and best-effort metadata from PDF bytes.

    A page whose extraction fails contributes empty text instead of aborting
    the document.
    """

    def parse(self, data: bytes) -> ParsedDocument:
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted and not reader.decrypt(""):
                raise DocumentParseError("The PDF is password protected")
            raw_pages = list(reader.pages)
        except DocumentParseError:
            raise
        except (PdfReadError, ValueError, OSError) as error:
            LOGGER.warning("Failed to open PDF: %s", error)
            raise DocumentParseError("Failed to parse PDF file", cause=error) from error

        pages: List[Page] = []
        for index, page in enumerate(raw_pages, start=1):
            try:
                text = page.extract_text() or ""
            except Exception as error:  # pragma: no cover - depends on the document
                LOGGER.warning("Failed to extract text from PDF page %s: %s", index, error)
                text = ""
            pages.append(Page(page_number=index, text=text))

        metadata = self._metadata(reader, len(pages))
        LOGGER.info("Parsed PDF with %s pages (title=%r)", len(pages), metadata.title)
        return ParsedDocument(pages=tuple(pages), metadata=metadata)

    @staticmethod
    def _metadata(reader: PdfReader, page_count: int) -> DocumentMetadata:
        try:
            info = reader.metadata
        except PdfReadError as error:  # pragma: no cover - malformed info dictionaries
            LOGGER.warning("Failed to read PDF metadata: %s", error)
            info = None
        if info is None:
            return DocumentMetadata(page_count=page_count)

        raw: Dict[str, str] = {str(key).lstrip("/"): str(info[key]) for key in info}
        return DocumentMetadata(
            page_count=page_count,
            title=info.title or None,
            author=info.author or None,
            creation_date=_creation_date(info),
            info=raw,
        )


__all__ = ["PDFParser", "PDF_CONTENT_TYPE", "validate_pdf_upload"]
