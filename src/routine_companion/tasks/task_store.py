# src/routine_companion/tasks/task_store.py

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

from ..core.ports import KeyValueStore
from .due import advance_recurrence, format_timestamp, parse_due_at
from .task_models import ChatMessage, ChatRole, Recurrence, Task

logger = logging.getLogger(__name__)

TASKS_KEY = "routine.tasks"
CHAT_KEY = "routine.chat"


class ChangeKind(StrEnum):
    LOADED = "loaded"
    ADDED = "added"
    COMPLETED = "completed"
    REOPENED = "reopened"
    SNOOZED = "snoozed"
    DELETED = "deleted"
    ROLLED_OVER = "rolled_over"


@dataclass(slots=True, frozen=True)
class TaskChange:
    kind: ChangeKind
    task_id: str | None = None


TaskListener = Callable[[list[Task], TaskChange], None]


class TaskStore:
    """
    Sole owner of the task list and the chat history.

    Lifecycle:
    - construct with a key-value store, then call load() once at startup
    - every mutation rewrites the whole affected document (write-through)
    - listeners get a snapshot after each task mutation and re-derive their own state

    New tasks go to the front of the list.
    """

    def __init__(self, kv: KeyValueStore, *, clock: Callable[[], float] = time.time) -> None:
        self._kv = kv
        self._clock = clock
        self._tasks: list[Task] = []
        self._chat: list[ChatMessage] = []
        self._listeners: list[TaskListener] = []

    # ---- persistence ----

    def _read_list(self, key: str) -> list[Any]:
        try:
            raw = self._kv.get(key)
        except Exception:
            logger.exception("KV read failed key=%s", key)
            return []
        if not raw:
            return []
        try:
            val = json.loads(raw)
        except ValueError:
            logger.warning("Stored document %s is not valid JSON; starting empty.", key)
            return []
        if not isinstance(val, list):
            logger.warning("Stored document %s is not a list; starting empty.", key)
            return []
        return val

    def _write_list(self, key: str, items: list[dict[str, Any]]) -> None:
        try:
            self._kv.set(key, json.dumps(items, ensure_ascii=False))
        except Exception:
            # In-memory state stays authoritative; the next mutation retries the full write.
            logger.exception("KV write failed key=%s", key)

    def _persist_tasks(self) -> None:
        self._write_list(TASKS_KEY, [t.to_dict() for t in self._tasks])

    def _persist_chat(self) -> None:
        self._write_list(CHAT_KEY, [m.to_dict() for m in self._chat])

    def load(self) -> None:
        """Read both documents in full. Bad entries are skipped, never fatal."""
        tasks: list[Task] = []
        for item in self._read_list(TASKS_KEY):
            if not isinstance(item, dict):
                continue
            try:
                tasks.append(Task.from_dict(item))
            except ValueError:
                logger.warning("Skipping invalid stored task: %r", item)

        chat = [ChatMessage.from_dict(m) for m in self._read_list(CHAT_KEY) if isinstance(m, dict)]

        self._tasks = tasks
        self._chat = chat
        logger.info("TaskStore loaded tasks=%d chat=%d", len(tasks), len(chat))
        self._emit(TaskChange(ChangeKind.LOADED))

    # ---- listeners ----

    def subscribe(self, listener: TaskListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, change: TaskChange) -> None:
        snapshot = list(self._tasks)
        for listener in list(self._listeners):
            try:
                listener(snapshot, change)
            except Exception:
                logger.exception("Task listener failed change=%s", change.kind.value)

    def _commit(self, change: TaskChange) -> None:
        self._persist_tasks()
        self._emit(change)

    # ---- queries ----

    def list_tasks(self) -> list[Task]:
        return list(self._tasks)

    def get_task(self, task_id: str) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def list_chat(self) -> list[ChatMessage]:
        return list(self._chat)

    def _index_of(self, task_id: str) -> int:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return -1

    # ---- task mutations ----

    def add_task(
        self,
        title: str,
        *,
        due_at: str | None = None,
        recurrence: Recurrence = Recurrence.ONCE,
    ) -> Task:
        title = (title or "").strip()
        if not title:
            raise ValueError("title is required")

        # Parseable dates are normalized to UTC ISO; anything else is kept and reads as "never due".
        due_norm: str | None = None
        if due_at:
            ts = parse_due_at(due_at)
            due_norm = format_timestamp(ts) if ts is not None else due_at

        task = Task(id=str(uuid.uuid4()), title=title, due_at=due_norm, recurrence=recurrence)
        self._tasks.insert(0, task)
        logger.info("Task added id=%s recurrence=%s due=%s", task.id, task.recurrence.value, task.due_at)
        self._commit(TaskChange(ChangeKind.ADDED, task.id))
        return task

    def toggle_task(self, task_id: str) -> Task | None:
        idx = self._index_of(task_id)
        if idx < 0:
            return None
        updated = replace(self._tasks[idx], completed=not self._tasks[idx].completed)
        self._tasks[idx] = updated
        kind = ChangeKind.COMPLETED if updated.completed else ChangeKind.REOPENED
        logger.info("Task %s -> %s", task_id, kind.value)
        self._commit(TaskChange(kind, task_id))
        return updated

    def snooze_task(self, task_id: str, minutes: int = 10) -> Task | None:
        idx = self._index_of(task_id)
        if idx < 0:
            return None
        next_due = self._clock() + max(0, int(minutes)) * 60
        updated = replace(self._tasks[idx], due_at=format_timestamp(next_due))
        self._tasks[idx] = updated
        logger.info("Task %s snoozed %s min -> %s", task_id, minutes, updated.due_at)
        self._commit(TaskChange(ChangeKind.SNOOZED, task_id))
        return updated

    def delete_task(self, task_id: str) -> bool:
        idx = self._index_of(task_id)
        if idx < 0:
            return False
        del self._tasks[idx]
        logger.info("Task %s deleted", task_id)
        self._commit(TaskChange(ChangeKind.DELETED, task_id))
        return True

    def roll_over_recurring(self, now: float | None = None) -> list[Task]:
        """Re-open completed daily/weekly tasks whose next occurrence has arrived."""
        now_ts = self._clock() if now is None else now
        rolled: list[Task] = []
        for i, t in enumerate(self._tasks):
            advanced = advance_recurrence(t, now_ts)
            if advanced is None:
                continue
            self._tasks[i] = advanced
            rolled.append(advanced)
            logger.info("Task %s rolled over -> due %s", t.id, advanced.due_at)
        if rolled:
            self._commit(TaskChange(ChangeKind.ROLLED_OVER))
        return rolled

    # ---- chat ----

    def append_chat(self, role: ChatRole, content: str) -> ChatMessage:
        msg = ChatMessage(role=role, content=content, ts=int(self._clock() * 1000))
        self._chat.append(msg)
        self._persist_chat()
        return msg
