# src/routine_companion/tasks/overdue.py

from __future__ import annotations

"""
Overdue poller.

A fixed-cadence foreground loop. Each sweep:
- (optionally) re-opens completed recurring tasks whose next occurrence arrived,
- collects open tasks whose next due time is at or before now,
- if there are any, sends ONE aggregated notification and ONE spoken message.

Nothing is remembered between sweeps: a task that stays overdue is announced
again on every sweep.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence

from ..core.ports import Notifier, Speaker
from .due import find_overdue
from .task_models import Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Reminder"
MAX_LISTED_TITLES = 3


def build_overdue_message(overdue: Sequence[Task]) -> str:
    n = len(overdue)
    titles = ", ".join(t.title for t in overdue[:MAX_LISTED_TITLES])
    return f"You have {n} overdue task{'s' if n > 1 else ''}: {titles}"


def sweep_overdue(
    store: TaskStore,
    notifier: Notifier,
    speaker: Speaker,
    *,
    now: float,
    rollover: bool = False,
) -> list[Task]:
    """Run a single sweep at `now`. Returns the overdue tasks that were announced."""
    if rollover:
        store.roll_over_recurring(now)

    overdue = find_overdue(store.list_tasks(), now)
    if not overdue:
        return []

    message = build_overdue_message(overdue)
    logger.info("Overdue sweep: %d task(s)", len(overdue))

    try:
        notifier.notify(NOTIFICATION_TITLE, message)
    except Exception:
        logger.warning("Notifier failed", exc_info=True)

    try:
        speaker.speak(message)
    except Exception:
        logger.warning("Speaker failed", exc_info=True)

    return overdue


async def run_overdue_poller(
    store: TaskStore,
    notifier: Notifier,
    speaker: Speaker,
    *,
    interval_seconds: float = 120.0,
    rollover: bool = True,
    clock: Callable[[], float] = time.time,
) -> None:
    """
    Sweep every interval_seconds (first sweep after one interval).

    To stop the poller, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while True:
        await asyncio.sleep(sleep_s)
        try:
            sweep_overdue(store, notifier, speaker, now=clock(), rollover=rollover)
        except Exception:
            logger.exception("Overdue sweep failed")
