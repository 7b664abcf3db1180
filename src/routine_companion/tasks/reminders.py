# src/routine_companion/tasks/reminders.py

from __future__ import annotations

"""
Reminder scheduling (foreground side).

The scheduler never holds timers itself. It turns the current task snapshot
into SCHEDULE / CANCEL messages and posts them to the background worker:
- every open task gets a schedule message with a clamped interval
- a task that was just completed or deleted gets exactly one cancel message

The worker applies messages per id in send order, so re-sending a schedule
simply replaces the previous timer.
"""

import logging
import math
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from ..core.ports import ReminderChannel
from .due import next_due_timestamp
from .task_models import Task
from .task_store import ChangeKind, TaskChange

logger = logging.getLogger(__name__)

SCHEDULE_REMINDER = "SCHEDULE_REMINDER"
CANCEL_REMINDER = "CANCEL_REMINDER"

MIN_INTERVAL_MS = 60_000
DEFAULT_INTERVAL_MS = 300_000


@dataclass(slots=True, frozen=True)
class ScheduleReminder:
    id: str
    title: str
    interval_ms: int

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": SCHEDULE_REMINDER,
            "payload": {"id": self.id, "title": self.title, "intervalMs": self.interval_ms},
        }


@dataclass(slots=True, frozen=True)
class CancelReminder:
    id: str

    def to_wire(self) -> dict[str, Any]:
        return {"type": CANCEL_REMINDER, "payload": {"id": self.id}}


ReminderMessage = ScheduleReminder | CancelReminder


def message_from_wire(data: dict[str, Any]) -> ReminderMessage:
    """Parse {"type": ..., "payload": {...}}. Raises ValueError on anything else."""
    kind = data.get("type")
    payload = data.get("payload")
    if not isinstance(payload, dict):
        raise ValueError("reminder message payload must be an object")

    task_id = str(payload.get("id") or "")
    if not task_id:
        raise ValueError("reminder message id is required")

    if kind == SCHEDULE_REMINDER:
        try:
            interval_ms = int(payload["intervalMs"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError("intervalMs must be an integer") from e
        return ScheduleReminder(id=task_id, title=str(payload.get("title", "")), interval_ms=interval_ms)

    if kind == CANCEL_REMINDER:
        return CancelReminder(id=task_id)

    raise ValueError(f"unknown reminder message type: {kind!r}")


def compute_interval_ms(
    task: Task,
    now: float,
    *,
    min_interval_ms: int = MIN_INTERVAL_MS,
    default_interval_ms: int = DEFAULT_INTERVAL_MS,
) -> int:
    """
    Timer interval for a task: time until its next due moment, clamped to a minimum.

    Tasks that are never due get the default interval. Overdue tasks get the minimum.
    """
    delta_s = next_due_timestamp(task) - now
    if math.isfinite(delta_s):
        raw_ms = int(delta_s * 1000)
    else:
        raw_ms = int(default_interval_ms)
    return max(int(min_interval_ms), raw_ms)


class ReminderScheduler:
    """Keeps one background timer per open task in sync with the task list."""

    def __init__(
        self,
        channel: ReminderChannel,
        *,
        clock: Callable[[], float] = time.time,
        min_interval_ms: int = MIN_INTERVAL_MS,
        default_interval_ms: int = DEFAULT_INTERVAL_MS,
    ) -> None:
        self._channel = channel
        self._clock = clock
        self._min_interval_ms = int(min_interval_ms)
        self._default_interval_ms = int(default_interval_ms)

    def _post(self, message: ReminderMessage) -> None:
        try:
            self._channel.post(message)
        except Exception:
            # No background context available: reminders degrade to the foreground poller.
            logger.warning("Reminder channel rejected %s", type(message).__name__, exc_info=True)

    def sync(self, tasks: Iterable[Task]) -> int:
        """Send a schedule message for every open task. Returns how many were sent."""
        now = self._clock()
        sent = 0
        for t in tasks:
            if t.completed:
                continue
            interval_ms = compute_interval_ms(
                t,
                now,
                min_interval_ms=self._min_interval_ms,
                default_interval_ms=self._default_interval_ms,
            )
            self._post(ScheduleReminder(id=t.id, title=t.title, interval_ms=interval_ms))
            sent += 1
        logger.debug("Reminder sync: %d schedule message(s)", sent)
        return sent

    def cancel(self, task_id: str) -> None:
        logger.debug("Reminder cancel id=%s", task_id)
        self._post(CancelReminder(id=task_id))

    def resync(self, tasks: Iterable[Task]) -> int:
        """Recovery after (re)start: the worker's timers are never read back, only rebuilt."""
        return self.sync(tasks)

    def on_tasks_changed(self, tasks: list[Task], change: TaskChange) -> None:
        """TaskStore listener."""
        if change.task_id and change.kind in (ChangeKind.COMPLETED, ChangeKind.DELETED):
            self.cancel(change.task_id)
        self.sync(tasks)
