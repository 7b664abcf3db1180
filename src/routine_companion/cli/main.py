# src/routine_companion/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs on one asyncio loop:
- the background reminder worker,
- the overdue poller,
- the console REPL (optional; otherwise runs until Ctrl+C).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..tasks.overdue import run_overdue_poller
from .bootstrap import create_initial_state

logger = logging.getLogger(__name__)


def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    shutdown = getattr(state.speaker, "shutdown", None)
    if callable(shutdown):
        try:
            shutdown()
        except Exception:
            logger.debug("TTS shutdown failed.", exc_info=True)

    close = getattr(state.gateway, "close", None)
    if callable(close):
        try:
            close()
        except Exception:
            logger.debug("Agent gateway close failed.", exc_info=True)


async def run_app(state: AppState) -> None:
    settings = state.settings
    background: list[asyncio.Task[None]] = []

    if state.worker is not None:
        background.append(asyncio.create_task(state.worker.run(), name="reminder-worker"))

    # Loading emits a change event, which re-sends schedules for every open task.
    state.store.load()

    background.append(
        asyncio.create_task(
            run_overdue_poller(
                state.store,
                state.notifier,
                state.speaker,
                interval_seconds=settings.poll_interval_seconds,
                rollover=settings.recurrence_rollover,
                clock=state.clock,
            ),
            name="overdue-poller",
        )
    )

    try:
        if settings.console_enabled:
            await run_console_loop(state)
        else:
            logger.info("Console disabled. Running reminders only. Press Ctrl+C to stop.")
            await asyncio.Event().wait()
    finally:
        for task in background:
            task.cancel()
        for task in background:
            with contextlib.suppress(asyncio.CancelledError):
                await task


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)
    try:
        asyncio.run(run_app(state))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
