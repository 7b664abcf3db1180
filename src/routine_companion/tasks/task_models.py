# src/routine_companion/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class Recurrence(StrEnum):
    """How a task's due time advances after it is completed."""

    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"

    @classmethod
    def from_raw(cls, raw: str | None) -> Recurrence:
        if not raw:
            return cls.ONCE
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.ONCE


class ChatRole(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(slots=True, frozen=True)
class Task:
    """
    A tracked obligation.

    due_at / last_reminded_at are kept as ISO-8601 strings exactly as stored;
    parsing happens in the due-time calculator, which treats garbage as "never due".
    """

    id: str
    title: str
    due_at: str | None = None
    recurrence: Recurrence = Recurrence.ONCE
    completed: bool = False
    last_reminded_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "recurrence": self.recurrence.value,
            "completed": self.completed,
        }
        if self.due_at is not None:
            data["dueAt"] = self.due_at
        if self.last_reminded_at is not None:
            data["lastRemindedAt"] = self.last_reminded_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """
        Build a Task from a persisted / wire document.

        Accepts both the camelCase keys of the stored documents and snake_case.
        Raises ValueError when id or title is missing.
        """
        task_id = str(data.get("id") or "").strip()
        title = str(data.get("title") or "").strip()
        if not task_id:
            raise ValueError("task id is required")
        if not title:
            raise ValueError("task title is required")

        due_raw = data.get("dueAt", data.get("due_at"))
        reminded_raw = data.get("lastRemindedAt", data.get("last_reminded_at"))

        return cls(
            id=task_id,
            title=title,
            due_at=str(due_raw) if due_raw else None,
            recurrence=Recurrence.from_raw(data.get("recurrence")),
            completed=bool(data.get("completed", False)),
            last_reminded_at=str(reminded_raw) if reminded_raw else None,
        )


@dataclass(slots=True, frozen=True)
class ChatMessage:
    role: ChatRole
    content: str
    ts: int  # epoch milliseconds

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content, "ts": self.ts}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatMessage:
        raw_role = str(data.get("role", "user"))
        role = ChatRole.ASSISTANT if raw_role == ChatRole.ASSISTANT.value else ChatRole.USER
        try:
            ts = int(data.get("ts") or 0)
        except (TypeError, ValueError):
            ts = 0
        return cls(role=role, content=str(data.get("content", "")), ts=ts)
