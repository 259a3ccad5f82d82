from __future__ import annotations

import logging

import pytest

from pdfchat.models import Page
from pdfchat.segmenter import CHUNK_OVERLAP, CHUNK_SIZE, DocumentSegmenter, iter_windows, reconstruct, segment


def _text(length: int) -> str:
    alphabet = "abcdefghijklmnopqrstuvwxyz0123456789"
    return "".join(alphabet[index % len(alphabet)] for index in range(length))


def test_short_page_becomes_single_chunk() -> None:
    chunks = segment([Page(1, "Cats are mammals.")])

    assert len(chunks) == 1
    assert chunks[0].text == "Cats are mammals."
    assert chunks[0].source_page == 1
    assert chunks[0].sequence_index == 0


def test_long_page_windows_overlap_by_two_hundred_characters() -> None:
    text = _text(2500)

    chunks = segment([Page(1, text)])

    assert [len(chunk.text) for chunk in chunks] == [1000, 1000, 900]
    assert chunks[1].text[:CHUNK_OVERLAP] == chunks[0].text[-CHUNK_OVERLAP:]
    assert chunks[2].text[:CHUNK_OVERLAP] == chunks[1].text[-CHUNK_OVERLAP:]
    assert reconstruct(chunks) == text


def test_every_chunk_is_bounded_and_non_empty() -> None:
    pages = [Page(1, _text(1000)), Page(2, _text(1001)), Page(3, _text(37))]

    chunks = segment(pages)

    assert all(0 < len(chunk.text) <= CHUNK_SIZE for chunk in chunks)


def test_chunks_follow_page_order_with_global_sequence() -> None:
    pages = [Page(1, _text(1200)), Page(2, "second page"), Page(4, "fourth page")]

    chunks = segment(pages)

    assert [chunk.source_page for chunk in chunks] == [1, 1, 2, 4]
    assert [chunk.sequence_index for chunk in chunks] == [0, 1, 2, 3]


def test_each_page_is_reconstructed_from_its_own_chunks() -> None:
    pages = [Page(1, _text(1800)), Page(2, _text(3333))]

    chunks = segment(pages)

    for page in pages:
        own = [chunk for chunk in chunks if chunk.source_page == page.page_number]
        assert reconstruct(own) == page.text


def test_whitespace_only_page_yields_no_chunk() -> None:
    chunks = segment([Page(1, " \n\t  "), Page(2, "text")])

    assert [(chunk.source_page, chunk.text) for chunk in chunks] == [(2, "text")]


def test_empty_page_is_skipped_and_reported(caplog: pytest.LogCaptureFixture) -> None:
    segmenter = DocumentSegmenter()

    with caplog.at_level(logging.WARNING):
        chunks = segmenter.segment([Page(1, "intro"), Page(2, "   "), Page(3, "outro")])

    assert [chunk.source_page for chunk in chunks] == [1, 3]
    assert segmenter.last_report is not None
    assert segmenter.last_report.degraded_pages == [2]
    assert segmenter.last_report.used_fallback is False
    assert any("segment.page.degraded" in str(record.msg) for record in caplog.records)


def test_falls_back_to_full_text_when_no_page_has_text() -> None:
    segmenter = DocumentSegmenter()

    chunks = segmenter.segment([Page(1, ""), Page(2, "")], fallback_text="Recovered document text")

    assert len(chunks) == 1
    assert chunks[0].text == "Recovered document text"
    assert chunks[0].source_page is None
    assert segmenter.last_report.used_fallback is True


def test_no_text_anywhere_yields_no_chunks() -> None:
    assert segment([Page(1, ""), Page(2, " \n")]) == []
    assert segment([]) == []


def test_iter_windows_rejects_invalid_overlap() -> None:
    with pytest.raises(ValueError):
        list(iter_windows("abc", chunk_size=10, overlap=10))


def test_exact_window_length_produces_one_chunk() -> None:
    assert list(iter_windows(_text(CHUNK_SIZE))) == [(0, CHUNK_SIZE)]
