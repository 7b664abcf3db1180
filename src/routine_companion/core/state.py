# src/routine_companion/core/state.py

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..tasks.reminder_worker import ReminderWorker
from ..tasks.reminders import ReminderScheduler
from ..tasks.task_store import TaskStore
from .ports import AgentGateway, Notifier, Speaker


@dataclass
class AppState:
    """
    Composition root output.

    gateway=None means "absent" mode: the assistant answers with the offline
    fallback and never touches the network.
    """

    settings: Any

    store: TaskStore
    scheduler: ReminderScheduler
    notifier: Notifier
    speaker: Speaker

    gateway: AgentGateway | None = None
    worker: ReminderWorker | None = None

    tts_enabled: bool = False
    clock: Callable[[], float] = field(default=time.time)
