from __future__ import annotations

import pytest

from pdfchat import history as history_module
from pdfchat.history import ConversationHistory
from pdfchat.models import Role, SourceRef, Turn


@pytest.mark.anyio
async def test_append_exchange_keeps_user_and_assistant_together() -> None:
    log = ConversationHistory()

    await log.append_exchange(
        Turn(role=Role.USER, text="What are cats?"),
        Turn(role=Role.ASSISTANT, text="Mammals.", sources=(SourceRef("Cats are mammals.", 1),)),
    )

    turns = log.snapshot()
    assert [turn.role for turn in turns] == [Role.USER, Role.ASSISTANT]
    assert turns[1].sources == (SourceRef("Cats are mammals.", 1),)
    assert turns[0].sources is None


@pytest.mark.anyio
async def test_append_exchange_validates_roles() -> None:
    log = ConversationHistory()

    with pytest.raises(ValueError):
        await log.append_exchange(Turn(role=Role.ASSISTANT, text="x"), Turn(role=Role.USER, text="y"))

    assert len(log) == 0


@pytest.mark.anyio
async def test_snapshot_is_a_copy() -> None:
    log = ConversationHistory()
    await log.append_exchange(Turn(role=Role.USER, text="q"), Turn(role=Role.ASSISTANT, text="a"))

    snapshot = log.snapshot()
    await log.append_exchange(Turn(role=Role.USER, text="q2"), Turn(role=Role.ASSISTANT, text="a2"))

    assert len(snapshot) == 2
    assert len(log.snapshot()) == 4


@pytest.mark.anyio
async def test_clear_empties_the_log_and_reports_count() -> None:
    log = ConversationHistory()
    await log.append_exchange(Turn(role=Role.USER, text="q"), Turn(role=Role.ASSISTANT, text="a"))

    assert await log.clear() == 2
    assert log.snapshot() == ()
    assert await log.clear() == 0


@pytest.mark.anyio
async def test_recent_returns_tail_only() -> None:
    log = ConversationHistory()
    for number in range(3):
        await log.append_exchange(
            Turn(role=Role.USER, text=f"q{number}"),
            Turn(role=Role.ASSISTANT, text=f"a{number}"),
        )

    assert [turn.text for turn in log.recent(2)] == ["q2", "a2"]
    assert log.recent(0) == ()


def test_to_records_uses_content_key() -> None:
    log = ConversationHistory()
    log._turns.append(Turn(role=Role.USER, text="hello"))

    records = log.to_records()

    assert records[0]["role"] == "user"
    assert records[0]["content"] == "hello"
    assert records[0]["sources"] is None


@pytest.mark.anyio
async def test_module_helpers_operate_on_session_history(chat_service) -> None:
    from pdfchat.models import ParsedDocument

    session_id = await chat_service.create_session(ParsedDocument.from_texts(["Cats are mammals."]))
    session = await chat_service.get_session(session_id)
    await session.history.append_exchange(Turn(role=Role.USER, text="q"), Turn(role=Role.ASSISTANT, text="a"))

    assert len(history_module.history(session)) == 2
    assert await history_module.clear(session) == 2
    assert history_module.history(session) == ()
