# src/routine_companion/tasks/due.py

"""
Due-time rules.

Everything here is pure: callers pass `now` explicitly (epoch seconds),
nothing reads the clock or touches the store.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import replace
from datetime import UTC, datetime

from .task_models import Recurrence, Task

DAY_SECONDS = 24 * 3600.0
WEEK_SECONDS = 7 * DAY_SECONDS

_PERIODS: dict[Recurrence, float] = {
    Recurrence.DAILY: DAY_SECONDS,
    Recurrence.WEEKLY: WEEK_SECONDS,
}


def parse_due_at(raw: str | None) -> float | None:
    """
    ISO-8601 -> epoch seconds, or None when missing/unparsable.

    Naive values are read as local time (what a datetime-local form field produces).
    """
    if not raw:
        return None
    try:
        dt = datetime.fromisoformat(str(raw).strip())
        ts = dt.timestamp()
    except (TypeError, ValueError, OverflowError, OSError):
        return None
    if math.isnan(ts) or math.isinf(ts):
        return None
    return ts


def format_timestamp(ts: float) -> str:
    """Epoch seconds -> ISO-8601 UTC with millisecond precision and a 'Z' suffix."""
    dt = datetime.fromtimestamp(ts, tz=UTC)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def next_due_timestamp(task: Task) -> float:
    """
    Next moment the task becomes actionable, in epoch seconds.

    - no / unparsable due date -> inf
    - open task -> its due date, whatever the recurrence
    - completed daily / weekly -> due date + one period
    - completed once -> inf
    """
    due = parse_due_at(task.due_at)
    if due is None:
        return math.inf
    if not task.completed:
        return due
    period = _PERIODS.get(task.recurrence)
    if period is None:
        return math.inf
    return due + period


def is_overdue(task: Task, now: float) -> bool:
    return not task.completed and next_due_timestamp(task) <= now


def find_overdue(tasks: Iterable[Task], now: float) -> list[Task]:
    return [t for t in tasks if is_overdue(t, now)]


def advance_recurrence(task: Task, now: float) -> Task | None:
    """
    Re-open a completed recurring task once its next occurrence has arrived.

    The new due date is the latest occurrence at or before `now`, at least one
    period after the previous one, so the task shows up as overdue right away.
    Returns None when there is nothing to advance.
    """
    if not task.completed:
        return None
    period = _PERIODS.get(task.recurrence)
    due = parse_due_at(task.due_at)
    if period is None or due is None:
        return None
    if due + period > now:
        return None

    steps = max(1, math.floor((now - due) / period))
    new_due = due + steps * period

    return replace(task, due_at=format_timestamp(new_due), completed=False)
