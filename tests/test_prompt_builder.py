from pdfchat.models import DEFAULT_EXPLANATION_LEVEL, Chunk, Role, Turn
from pdfchat.prompt_builder import PromptBuilder, render_messages


def test_build_context_joins_chunks_with_blank_lines() -> None:
    chunks = [Chunk("first", 1, 0), Chunk("second", 2, 1)]

    assert PromptBuilder.build_context(chunks) == "first\n\nsecond"


def test_build_renders_default_templates() -> None:
    builder = PromptBuilder()

    messages = builder.build("What is covered?", [Chunk("Fire damage is covered.", 3, 0)])

    assert messages[0].role is Role.SYSTEM
    assert "ONLY" in messages[0].content
    assert messages[-1].role is Role.USER
    assert "Fire damage is covered." in messages[-1].content
    assert "Question: What is covered?" in messages[-1].content
    assert DEFAULT_EXPLANATION_LEVEL in messages[-1].content


def test_build_with_custom_templates_and_history() -> None:
    builder = PromptBuilder(system_text="SYS", user_template="{context}|{question}|{level}")
    history = [
        Turn(role=Role.USER, text="earlier question"),
        Turn(role=Role.ASSISTANT, text="earlier answer"),
        Turn(role=Role.SYSTEM, text="ignored"),
    ]

    messages = builder.build("now?", [Chunk("ctx", 1, 0)], explanation_level="expert", history=history)

    assert [message.to_dict() for message in messages] == [
        {"role": "system", "content": "SYS"},
        {"role": "user", "content": "earlier question"},
        {"role": "assistant", "content": "earlier answer"},
        {"role": "user", "content": "ctx|now?|expert"},
    ]


def test_build_without_chunks_keeps_empty_context() -> None:
    builder = PromptBuilder(system_text="SYS", user_template="[{context}] {question}")

    messages = builder.build("anything?", [])

    assert messages[-1].content == "[] anything?"


def test_context_braces_are_not_interpreted() -> None:
    builder = PromptBuilder(system_text="SYS", user_template="{context}")

    messages = builder.build("q", [Chunk("a {weird} value", 1, 0)])

    assert messages[-1].content == "a {weird} value"


def test_render_messages_prefixes_roles() -> None:
    builder = PromptBuilder(system_text="SYS", user_template="{question}")

    rendered = render_messages(builder.build("hi", []))

    assert rendered == "[system] SYS\n\n[user] hi"
