# src/routine_companion/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps persistence, notification, speech and the remote agent swappable
and makes testing easier.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from .result import Result

if TYPE_CHECKING:
    from ..tasks.reminders import ReminderMessage
    from ..tasks.task_models import Task


class KeyValueStore(Protocol):
    """Opaque persistence: whole documents keyed by name."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


class ReminderChannel(Protocol):
    """
    One-way, ordered channel to the background reminder context.

    Messages for the same id are applied in send order (last write wins).
    """

    def post(self, message: ReminderMessage) -> None: ...


class Notifier(Protocol):
    """Delivers a user-visible notification (desktop, console, ...)."""

    def notify(self, title: str, body: str) -> None: ...


class Speaker(Protocol):
    """Speaks text aloud. Implementations without audio simply do nothing."""

    def speak(self, text: str) -> None: ...


class AgentGateway(Protocol):
    """
    Remote planning assistant.

    Never raises for transport/API problems: returns Err(reason) instead,
    so the fallback path is an explicit branch for the caller.
    """

    def ask(self, prompt: str, tasks: Sequence[Task]) -> Result[str]: ...
