# src/routine_companion/core/assistant.py

"""
Assistant turn: user prompt -> remote agent (best effort) -> fallback -> chat history.

Failures of the remote agent are never shown to the user; they are logged and
the deterministic fallback reply is used instead.
"""

from __future__ import annotations

import asyncio
import logging

from ..llm.fallback import fallback_reply
from ..tasks.task_models import ChatRole
from .result import Err, Ok
from .state import AppState

logger = logging.getLogger(__name__)


async def ask_assistant(state: AppState, prompt: str) -> str:
    prompt = (prompt or "").strip()
    store = state.store
    store.append_chat(ChatRole.USER, prompt)

    tasks = store.list_tasks()
    reply: str | None = None

    if state.gateway is not None:
        # The gateway is blocking I/O; keep the event loop (and the poller) running meanwhile.
        result = await asyncio.to_thread(state.gateway.ask, prompt, tasks)
        match result:
            case Ok(value=text):
                reply = text
            case Err(reason=reason):
                logger.info("Agent unavailable, using fallback: %s", reason)
    else:
        logger.debug("No agent configured, using fallback.")

    if reply is None:
        reply = fallback_reply(prompt, tasks, state.clock())

    store.append_chat(ChatRole.ASSISTANT, reply)

    try:
        state.speaker.speak(reply)
    except Exception:
        logger.warning("Speaker failed", exc_info=True)

    return reply
