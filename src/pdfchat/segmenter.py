"""Split parsed pages into overlapping, page-attributed chunks."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple

from pdfchat.errors import SegmentationDegraded
from pdfchat.models import Chunk, Page
from pdfchat.telemetry import emit_segmentation_event, log_event

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 1000
CHUNK_OVERLAP = 200


@dataclass(slots=True)
class SegmentationReport:
    """Statistics describing the most recent :meth:`DocumentSegmenter.segment` call."""

    page_count: int = 0
    chunk_count: int = 0
    degraded_pages: List[int] = field(default_factory=list)
    used_fallback: bool = False


def iter_windows(text: str, chunk_size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> Iterator[Tuple[int, int]]:
    """Yield ``(start, end)`` offsets of fixed windows covering *text*.

    Every window except the last spans exactly ``chunk_size`` characters and
    consecutive windows share ``overlap`` characters.
    """

    if chunk_size <= 0:
        raise ValueError("chunk_size must be a positive integer")
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError("overlap must be non-negative and smaller than chunk_size")

    text_length = len(text)
    stride = chunk_size - overlap
    start = 0
    while start < text_length:
        end = min(start + chunk_size, text_length)
        yield start, end
        if end == text_length:
            break
        start += stride


class DocumentSegmenter:
    """Cut page texts into retrieval units while keeping page provenance."""

    def __init__(self, chunk_size: int = CHUNK_SIZE, overlap: int = CHUNK_OVERLAP) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be a positive integer")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError("overlap must be non-negative and smaller than chunk_size")
        self.chunk_size = chunk_size
        self.overlap = overlap
        self.last_report: Optional[SegmentationReport] = None

    def segment(self, pages: Iterable[Page], fallback_text: Optional[str] = None) -> List[Chunk]:
        """Return chunks for every page with text, in page order.

        When no page produces a chunk, the combined document text (either
        *fallback_text* or the page texts joined by a space) is chunked instead
        and the resulting chunks carry no page number.
        """

        pages = list(pages)
        report = SegmentationReport(page_count=len(pages))
        chunks: List[Chunk] = []

        for page in pages:
            # Whitespace-only pages count as empty and are reported as degraded.
            if not page.text.strip():
                report.degraded_pages.append(page.page_number)
                log_event(
                    LOGGER,
                    "segment.page.degraded",
                    level="warning",
                    exc=SegmentationDegraded(page.page_number),
                    page=page.page_number,
                )
                continue
            for start, end in iter_windows(page.text, self.chunk_size, self.overlap):
                chunks.append(
                    Chunk(
                        text=page.text[start:end],
                        source_page=page.page_number,
                        sequence_index=len(chunks),
                    )
                )

        if not chunks:
            combined = fallback_text if fallback_text is not None else " ".join(page.text for page in pages)
            if combined.strip():
                report.used_fallback = True
                LOGGER.info("No page produced text; chunking combined document text instead")
                for start, end in iter_windows(combined, self.chunk_size, self.overlap):
                    chunks.append(Chunk(text=combined[start:end], source_page=None, sequence_index=len(chunks)))

        report.chunk_count = len(chunks)
        self.last_report = report
        emit_segmentation_event(
            pages=report.page_count,
            chunks=report.chunk_count,
            degraded_pages=list(report.degraded_pages),
            used_fallback=report.used_fallback,
        )
        return chunks


def segment(pages: Iterable[Page], fallback_text: Optional[str] = None) -> List[Chunk]:
    """Segment *pages* with the fixed 1000/200 character window."""

    return DocumentSegmenter().segment(pages, fallback_text=fallback_text)


def reconstruct(chunks: Iterable[Chunk], overlap: int = CHUNK_OVERLAP) -> str:
    """Join consecutive chunks of one page, dropping the shared overlap."""

    parts: List[str] = []
    for index, chunk in enumerate(chunks):
        parts.append(chunk.text if index == 0 else chunk.text[overlap:])
    return "".join(parts)


__all__ = [
    "CHUNK_OVERLAP",
    "CHUNK_SIZE",
    "DocumentSegmenter",
    "SegmentationReport",
    "iter_windows",
    "reconstruct",
    "segment",
]
