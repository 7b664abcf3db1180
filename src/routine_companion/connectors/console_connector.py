# src/routine_companion/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.assistant import ask_assistant
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def run_console_loop(state: AppState) -> None:
    """
    Interactive REPL on the event loop.

    input() runs in a worker thread so reminders and the overdue poller keep
    firing while the prompt waits. Commands and assistant turns run on the loop,
    which keeps every store mutation in one context.
    """
    logger.info("Console connector started (tts=%s).", state.tts_enabled)
    _print_ts("[CONSOLE] Type a question for the assistant, or /help for commands. /exit to quit.\n")

    app_name = str(getattr(state.settings, "app_name", "routine"))

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> You: ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            cmd_response = await command_registry.dispatch(state, user_input, emit=_print_ts)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is not None:
            _print_ts(cmd_response)
            continue

        try:
            reply = await ask_assistant(state, user_input)
        except Exception:
            logger.exception("Assistant turn crashed.")
            _print_ts("Internal error while generating a reply.")
            continue

        _print_ts(f"<<< {app_name}:\n{reply}\n")

    logger.info("Console connector finished.")
