# tests/conftest.py

from __future__ import annotations

from types import SimpleNamespace

import pytest

from routine_companion.core.state import AppState
from routine_companion.tasks.reminders import ReminderScheduler
from routine_companion.tasks.task_store import TaskStore

from .fakes import FakeClock, InMemoryKeyValueStore, RecordingChannel, RecordingNotifier, RecordingSpeaker


@pytest.fixture()
def settings(tmp_path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="routine-test",
        data_dir=tmp_path,
        store_dir=tmp_path / "store",
        poll_interval_seconds=120.0,
        min_reminder_interval_ms=60_000,
        default_reminder_interval_ms=300_000,
        snooze_minutes=10,
        recurrence_rollover=True,
        tts_mode=False,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture()
def store(kv: InMemoryKeyValueStore, clock: FakeClock) -> TaskStore:
    s = TaskStore(kv, clock=clock)
    s.load()
    return s


@pytest.fixture()
def scheduler(channel: RecordingChannel, clock: FakeClock, store: TaskStore) -> ReminderScheduler:
    sched = ReminderScheduler(channel, clock=clock)
    store.subscribe(sched.on_tasks_changed)
    return sched


@pytest.fixture()
def state(settings, store, scheduler, clock) -> AppState:
    """AppState wired with deterministic fakes and no remote agent (absent mode)."""
    return AppState(
        settings=settings,
        store=store,
        scheduler=scheduler,
        notifier=RecordingNotifier(),
        speaker=RecordingSpeaker(),
        gateway=None,
        clock=clock,
    )
