# tests/test_assistant.py

from __future__ import annotations

import pytest

from routine_companion.core.assistant import ask_assistant
from routine_companion.core.result import Ok
from routine_companion.llm.fallback import EMPTY_REPLY
from routine_companion.tasks.due import format_timestamp
from routine_companion.tasks.task_models import ChatRole

from .fakes import NOW, BrokenSpeaker, FakeGateway, failing_gateway


@pytest.mark.asyncio
async def test_absent_mode_uses_fallback_and_records_chat(state) -> None:
    state.store.add_task("Pay rent", due_at=format_timestamp(NOW - 3600))

    reply = await ask_assistant(state, "buy milk, call mom")

    assert reply.splitlines()[0] == "- Overdue (1): Pay rent"
    chat = state.store.list_chat()
    assert [(m.role, m.content) for m in chat] == [
        (ChatRole.USER, "buy milk, call mom"),
        (ChatRole.ASSISTANT, reply),
    ]
    assert state.speaker.spoken == [reply]


@pytest.mark.asyncio
async def test_live_gateway_reply_is_used(state) -> None:
    gateway = FakeGateway(Ok("- Do the dishes first."))
    state.gateway = gateway
    task = state.store.add_task("Dishes")

    reply = await ask_assistant(state, "what now?")

    assert reply == "- Do the dishes first."
    assert gateway.calls == [("what now?", [task])]


@pytest.mark.asyncio
async def test_gateway_failure_falls_back_without_leaking_error(state) -> None:
    state.gateway = failing_gateway("HTTP 500 upstream exploded")

    reply = await ask_assistant(state, "")

    assert reply == EMPTY_REPLY
    assert "exploded" not in state.store.list_chat()[-1].content


@pytest.mark.asyncio
async def test_missing_speech_is_not_an_error(state) -> None:
    state.speaker = BrokenSpeaker()
    assert await ask_assistant(state, "stretch") == (
        "- Next: stretch\n- Action: pick one task and start a 25m focus block."
    )
