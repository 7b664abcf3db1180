# src/routine_companion/tasks/reminder_worker.py

from __future__ import annotations

"""
Background reminder context.

Isolated from the rest of the app: the only way in is post() (an inbox queue),
the only way out is the on_fire callback. It never reads or writes tasks.

Per task id there is at most one repeating timer:
- SCHEDULE replaces any existing timer for the id
- CANCEL removes it (no-op when there is none)
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from .reminders import CancelReminder, ReminderMessage, ScheduleReminder

logger = logging.getLogger(__name__)

FireCallback = Callable[[str, str], None]


@dataclass(slots=True)
class _Timer:
    title: str
    interval_ms: int
    handle: asyncio.Task[None]


class ReminderWorker:
    def __init__(self, on_fire: FireCallback) -> None:
        self._on_fire = on_fire
        self._inbox: asyncio.Queue[ReminderMessage] = asyncio.Queue()
        self._timers: dict[str, _Timer] = {}

    # ---- channel side (called by the scheduler) ----

    def post(self, message: ReminderMessage) -> None:
        self._inbox.put_nowait(message)

    # ---- worker side ----

    async def run(self) -> None:
        """Consume the inbox forever. Cancel the coroutine to stop; all timers are disarmed."""
        logger.info("Reminder worker started.")
        try:
            while True:
                message = await self._inbox.get()
                try:
                    self.apply(message)
                except Exception:
                    logger.exception("Reminder worker failed to apply %r", message)
                finally:
                    self._inbox.task_done()
        finally:
            self.cancel_all()
            logger.info("Reminder worker stopped.")

    async def drain(self) -> None:
        """Wait until every posted message has been applied."""
        await self._inbox.join()

    def apply(self, message: ReminderMessage) -> None:
        if isinstance(message, ScheduleReminder):
            self._arm(message)
        elif isinstance(message, CancelReminder):
            self._disarm(message.id)
        else:
            logger.warning("Unknown reminder message: %r", message)

    def _arm(self, msg: ScheduleReminder) -> None:
        self._disarm(msg.id)
        interval_ms = max(1, int(msg.interval_ms))
        handle = asyncio.get_running_loop().create_task(
            self._tick(msg.id, msg.title, interval_ms / 1000.0),
            name=f"reminder:{msg.id}",
        )
        self._timers[msg.id] = _Timer(title=msg.title, interval_ms=interval_ms, handle=handle)
        logger.debug("Armed reminder id=%s every %d ms", msg.id, interval_ms)

    def _disarm(self, task_id: str) -> None:
        timer = self._timers.pop(task_id, None)
        if timer is None:
            return
        timer.handle.cancel()
        logger.debug("Disarmed reminder id=%s", task_id)

    async def _tick(self, task_id: str, title: str, interval_s: float) -> None:
        while True:
            await asyncio.sleep(interval_s)
            try:
                self._on_fire(task_id, title)
            except Exception:
                logger.exception("Reminder fire callback failed id=%s", task_id)

    def cancel_all(self) -> None:
        for task_id in list(self._timers):
            self._disarm(task_id)

    # ---- introspection ----

    def pending_ids(self) -> set[str]:
        return {k for k, t in self._timers.items() if not t.handle.done()}

    def interval_for(self, task_id: str) -> int | None:
        timer = self._timers.get(task_id)
        return timer.interval_ms if timer is not None else None
