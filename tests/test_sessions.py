from __future__ import annotations

import asyncio

import pytest

from pdfchat.errors import InitializationError, SessionNotFoundError
from pdfchat.models import ParsedDocument, Role, Turn


def _document(*texts: str) -> ParsedDocument:
    return ParsedDocument.from_texts(list(texts))


@pytest.mark.anyio
async def test_create_session_indexes_document(registry) -> None:
    session_id = await registry.create_session(_document("Cats are mammals.", "Dogs are mammals too."))

    session = await registry.get_session(session_id)
    assert session.chunk_count == 2
    assert session.history.snapshot() == ()
    assert session.metadata.page_count == 2
    assert session_id in registry


@pytest.mark.anyio
async def test_session_ids_are_unique(registry) -> None:
    first = await registry.create_session(_document("alpha"))
    second = await registry.create_session(_document("alpha"))

    assert first != second
    assert len(registry) == 2


@pytest.mark.anyio
async def test_document_without_text_fails_initialisation(registry) -> None:
    with pytest.raises(InitializationError):
        await registry.create_session(_document("", "   "))

    assert len(registry) == 0


@pytest.mark.anyio
async def test_document_with_only_fallback_text_is_indexed(registry) -> None:
    document = ParsedDocument.from_texts(["", ""], full_text="Text recovered from the whole file")

    session_id = await registry.create_session(document)

    session = await registry.get_session(session_id)
    assert session.index.entries[0].chunk.source_page is None


@pytest.mark.anyio
async def test_unknown_session_raises_not_found(registry) -> None:
    with pytest.raises(SessionNotFoundError) as excinfo:
        await registry.get_session("missing")

    assert excinfo.value.session_id == "missing"
    assert "Upload the PDF again" in str(excinfo.value)


@pytest.mark.anyio
async def test_destroy_is_idempotent(registry) -> None:
    session_id = await registry.create_session(_document("alpha"))

    assert await registry.destroy_session(session_id) is True
    assert await registry.destroy_session(session_id) is False
    with pytest.raises(SessionNotFoundError):
        await registry.get_session(session_id)


@pytest.mark.anyio
async def test_sessions_do_not_share_history(registry) -> None:
    first = await registry.create_session(_document("alpha"))
    second = await registry.create_session(_document("beta"))

    session = await registry.get_session(first)
    await session.history.append_exchange(Turn(role=Role.USER, text="q"), Turn(role=Role.ASSISTANT, text="a"))

    other = await registry.get_session(second)
    assert other.history.snapshot() == ()
    assert other.index is not session.index


@pytest.mark.anyio
async def test_idle_sessions_expire(registry_factory, fake_clock) -> None:
    registry = registry_factory(idle_ttl_seconds=60, clock=fake_clock)
    session_id = await registry.create_session(_document("alpha"))

    fake_clock.advance(30)
    await registry.get_session(session_id)
    fake_clock.advance(45)
    await registry.get_session(session_id)

    fake_clock.advance(61)
    with pytest.raises(SessionNotFoundError):
        await registry.get_session(session_id)
    assert session_id not in registry


@pytest.mark.anyio
async def test_evict_expired_drops_only_idle_sessions(registry_factory, fake_clock) -> None:
    registry = registry_factory(idle_ttl_seconds=60, clock=fake_clock)
    stale = await registry.create_session(_document("alpha"))
    fake_clock.advance(50)
    fresh = await registry.create_session(_document("beta"))
    fake_clock.advance(20)

    assert await registry.evict_expired() == [stale]
    assert fresh in registry


@pytest.mark.anyio
async def test_capacity_evicts_least_recently_used(registry_factory, fake_clock) -> None:
    registry = registry_factory(max_sessions=2, clock=fake_clock)
    oldest = await registry.create_session(_document("alpha"))
    fake_clock.advance(1)
    middle = await registry.create_session(_document("beta"))
    fake_clock.advance(1)
    await registry.get_session(oldest)
    fake_clock.advance(1)

    newest = await registry.create_session(_document("gamma"))

    assert middle not in registry
    assert oldest in registry and newest in registry


@pytest.mark.anyio
async def test_concurrent_creation_registers_every_session(registry) -> None:
    session_ids = await asyncio.gather(*(registry.create_session(_document(f"doc {n}")) for n in range(10)))

    assert len(set(session_ids)) == 10
    assert len(registry) == 10


@pytest.mark.anyio
async def test_stop_cancels_sweeper_and_clears(registry_factory) -> None:
    registry = registry_factory(idle_ttl_seconds=60, sweep_interval_seconds=0.01)
    await registry.create_session(_document("alpha"))

    registry.start()
    await asyncio.sleep(0.03)
    await registry.stop()

    assert len(registry) == 0
    assert registry._sweeper is None
