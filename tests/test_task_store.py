# tests/test_task_store.py

from __future__ import annotations

import json

import pytest

from routine_companion.tasks.due import format_timestamp, parse_due_at
from routine_companion.tasks.kv_store import FileKeyValueStore
from routine_companion.tasks.task_models import ChatRole, Recurrence
from routine_companion.tasks.task_store import CHAT_KEY, TASKS_KEY, ChangeKind, TaskStore

from .fakes import NOW, FakeClock, InMemoryKeyValueStore


def test_add_task_prepends_and_persists_camel_case(store, kv) -> None:
    first = store.add_task("Pay rent", due_at="2023-11-14T22:13:20Z", recurrence=Recurrence.WEEKLY)
    second = store.add_task("  Buy milk  ")

    assert [t.title for t in store.list_tasks()] == ["Buy milk", "Pay rent"]
    assert first.id != second.id
    assert first.completed is False

    doc = json.loads(kv.data[TASKS_KEY])
    assert doc[1] == {
        "id": first.id,
        "title": "Pay rent",
        "recurrence": "weekly",
        "completed": False,
        "dueAt": "2023-11-14T22:13:20.000Z",
    }
    assert "dueAt" not in doc[0]


def test_add_task_requires_title(store) -> None:
    with pytest.raises(ValueError):
        store.add_task("   ")


def test_toggle_snooze_delete(store, clock) -> None:
    task = store.add_task("Stretch", recurrence=Recurrence.DAILY)

    done = store.toggle_task(task.id)
    assert done is not None and done.completed is True
    reopened = store.toggle_task(task.id)
    assert reopened is not None and reopened.completed is False

    snoozed = store.snooze_task(task.id, 10)
    assert snoozed is not None
    assert parse_due_at(snoozed.due_at) == clock.now + 600

    assert store.delete_task(task.id) is True
    assert store.list_tasks() == []
    assert store.delete_task(task.id) is False
    assert store.toggle_task("missing") is None
    assert store.snooze_task("missing") is None


def test_reload_restores_tasks_and_chat_in_order(kv, clock) -> None:
    store = TaskStore(kv, clock=clock)
    store.load()
    a = store.add_task("A", due_at=format_timestamp(NOW + 60))
    store.add_task("B")
    store.toggle_task(a.id)
    store.append_chat(ChatRole.USER, "hi")
    clock.advance(1)
    store.append_chat(ChatRole.ASSISTANT, "hello")

    fresh = TaskStore(kv, clock=clock)
    fresh.load()

    assert fresh.list_tasks() == store.list_tasks()
    assert [(m.role, m.content) for m in fresh.list_chat()] == [
        (ChatRole.USER, "hi"),
        (ChatRole.ASSISTANT, "hello"),
    ]
    assert fresh.list_chat()[1].ts == int((NOW + 1) * 1000)


def test_malformed_documents_load_as_empty(clock) -> None:
    kv = InMemoryKeyValueStore({TASKS_KEY: "{not json", CHAT_KEY: json.dumps({"oops": 1})})
    store = TaskStore(kv, clock=clock)
    store.load()
    assert store.list_tasks() == []
    assert store.list_chat() == []


def test_invalid_entries_are_skipped(clock) -> None:
    docs = [
        {"id": "1", "title": "ok", "recurrence": "daily", "completed": True, "lastRemindedAt": "x"},
        {"id": "2", "title": ""},
        "garbage",
        {"id": "3", "title": "odd recurrence", "recurrence": "hourly"},
    ]
    store = TaskStore(InMemoryKeyValueStore({TASKS_KEY: json.dumps(docs)}), clock=clock)
    store.load()

    tasks = store.list_tasks()
    assert [t.id for t in tasks] == ["1", "3"]
    assert tasks[0].last_reminded_at == "x"
    assert tasks[1].recurrence is Recurrence.ONCE


def test_write_failure_keeps_memory_state(clock) -> None:
    store = TaskStore(InMemoryKeyValueStore(fail_writes=True), clock=clock)
    store.load()
    task = store.add_task("still here")
    assert store.get_task(task.id) == task


def test_listeners_get_snapshot_and_failures_are_isolated(store) -> None:
    seen: list[tuple[ChangeKind, int]] = []

    def broken(tasks, change) -> None:
        raise RuntimeError("listener bug")

    store.subscribe(broken)
    unsubscribe = store.subscribe(lambda tasks, change: seen.append((change.kind, len(tasks))))

    task = store.add_task("x")
    store.toggle_task(task.id)
    unsubscribe()
    store.delete_task(task.id)

    assert seen == [(ChangeKind.ADDED, 1), (ChangeKind.COMPLETED, 1)]


def test_roll_over_recurring_reopens_due_tasks(store, clock) -> None:
    daily = store.add_task("Water plants", due_at=format_timestamp(NOW - 2 * 86_400), recurrence=Recurrence.DAILY)
    once = store.add_task("One-off", due_at=format_timestamp(NOW - 2 * 86_400))
    store.toggle_task(daily.id)
    store.toggle_task(once.id)

    rolled = store.roll_over_recurring(NOW)

    assert [t.id for t in rolled] == [daily.id]
    current = store.get_task(daily.id)
    assert current is not None and current.completed is False
    assert parse_due_at(current.due_at) == NOW + 86_400
    assert store.get_task(once.id).completed is True


def test_file_kv_store_roundtrip(tmp_path) -> None:
    kv = FileKeyValueStore(tmp_path / "kv")
    assert kv.get(TASKS_KEY) is None
    kv.set(TASKS_KEY, "[]")
    kv.set(TASKS_KEY, '[{"id": "1"}]')
    assert kv.get(TASKS_KEY) == '[{"id": "1"}]'
    assert not list((tmp_path / "kv").glob("*.tmp"))


def test_store_over_files_survives_restart(tmp_path) -> None:
    clock = FakeClock()
    first = TaskStore(FileKeyValueStore(tmp_path), clock=clock)
    first.load()
    task = first.add_task("persisted")

    second = TaskStore(FileKeyValueStore(tmp_path), clock=clock)
    second.load()
    assert second.get_task(task.id) == task
