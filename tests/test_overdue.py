# tests/test_overdue.py

from __future__ import annotations

import asyncio

import pytest

from routine_companion.tasks.due import format_timestamp
from routine_companion.tasks.overdue import build_overdue_message, run_overdue_poller, sweep_overdue
from routine_companion.tasks.task_models import Recurrence, Task

from .fakes import NOW, BrokenSpeaker, RecordingNotifier, RecordingSpeaker


def test_sweep_boundary_one_millisecond(store) -> None:
    past = store.add_task("Past", due_at=format_timestamp(NOW - 0.001))
    store.add_task("Future", due_at=format_timestamp(NOW + 0.001))

    overdue = sweep_overdue(store, RecordingNotifier(), RecordingSpeaker(), now=NOW)

    assert [t.id for t in overdue] == [past.id]


def test_sweep_sends_one_aggregated_message(store) -> None:
    for title in ("A", "B", "C", "D"):
        store.add_task(title, due_at=format_timestamp(NOW - 60))
    store.add_task("No date")
    notifier, speaker = RecordingNotifier(), RecordingSpeaker()

    overdue = sweep_overdue(store, notifier, speaker, now=NOW)

    assert len(overdue) == 4
    assert notifier.sent == [("Reminder", "You have 4 overdue tasks: D, C, B")]
    assert speaker.spoken == ["You have 4 overdue tasks: D, C, B"]


def test_sweep_is_silent_when_nothing_is_overdue(store) -> None:
    store.add_task("Later", due_at=format_timestamp(NOW + 3600))
    notifier, speaker = RecordingNotifier(), RecordingSpeaker()

    assert sweep_overdue(store, notifier, speaker, now=NOW) == []
    assert notifier.sent == []
    assert speaker.spoken == []


def test_overdue_task_is_announced_every_sweep(store) -> None:
    store.add_task("Taxes", due_at=format_timestamp(NOW - 1))
    notifier = RecordingNotifier()

    for i in range(3):
        sweep_overdue(store, notifier, RecordingSpeaker(), now=NOW + i * 120)

    assert len(notifier.sent) == 3


def test_completed_task_leaves_the_sweep(store, scheduler, channel) -> None:
    task = store.add_task("Pay rent", due_at=format_timestamp(NOW - 0.001))
    notifier = RecordingNotifier()
    assert sweep_overdue(store, notifier, RecordingSpeaker(), now=NOW) != []
    channel.clear()

    store.toggle_task(task.id)

    assert sweep_overdue(store, notifier, RecordingSpeaker(), now=NOW) == []
    assert [m.id for m in channel.cancels()] == [task.id]


def test_singular_message() -> None:
    assert build_overdue_message([Task(id="1", title="Walk dog")]) == "You have 1 overdue task: Walk dog"


def test_missing_speech_does_not_stop_notification(store) -> None:
    store.add_task("Call bank", due_at=format_timestamp(NOW - 5))
    notifier = RecordingNotifier()

    sweep_overdue(store, notifier, BrokenSpeaker(), now=NOW)

    assert notifier.sent == [("Reminder", "You have 1 overdue task: Call bank")]


def test_rollover_reopens_recurring_task_and_announces_it(store) -> None:
    task = store.add_task("Gym", due_at=format_timestamp(NOW - 8 * 86_400), recurrence=Recurrence.WEEKLY)
    store.toggle_task(task.id)
    notifier = RecordingNotifier()

    overdue = sweep_overdue(store, notifier, RecordingSpeaker(), now=NOW, rollover=True)

    assert [t.id for t in overdue] == [task.id]
    assert store.get_task(task.id).completed is False
    assert store.get_task(task.id).due_at == format_timestamp(NOW - 86_400)
    assert notifier.sent == [("Reminder", "You have 1 overdue task: Gym")]


def test_rollover_announces_todays_daily_occurrence(store, scheduler, channel) -> None:
    task = store.add_task("Meds", due_at=format_timestamp(NOW - 86_400), recurrence=Recurrence.DAILY)
    store.toggle_task(task.id)
    channel.clear()
    speaker = RecordingSpeaker()

    overdue = sweep_overdue(store, RecordingNotifier(), speaker, now=NOW + 120, rollover=True)

    assert [t.title for t in overdue] == ["Meds"]
    assert store.get_task(task.id).due_at == format_timestamp(NOW)
    assert speaker.spoken == ["You have 1 overdue task: Meds"]
    assert [m.id for m in channel.schedules()] == [task.id]


@pytest.mark.asyncio
async def test_poller_loop_sweeps_on_cadence(store, clock) -> None:
    store.add_task("Overdue", due_at=format_timestamp(NOW - 10))
    notifier = RecordingNotifier()

    runner = asyncio.create_task(
        run_overdue_poller(store, notifier, RecordingSpeaker(), interval_seconds=0.01, clock=clock)
    )
    await asyncio.sleep(0.08)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert len(notifier.sent) >= 2
    assert all(body == "You have 1 overdue task: Overdue" for _, body in notifier.sent)


@pytest.mark.asyncio
async def test_poller_keeps_running_after_a_failed_sweep(clock) -> None:
    class FlakyStore:
        def __init__(self) -> None:
            self.calls = 0

        def roll_over_recurring(self, now):
            return []

        def list_tasks(self):
            self.calls += 1
            if self.calls == 1:
                raise RuntimeError("transient")
            return []

    flaky = FlakyStore()
    runner = asyncio.create_task(
        run_overdue_poller(flaky, RecordingNotifier(), RecordingSpeaker(), interval_seconds=0.01, clock=clock)
    )
    await asyncio.sleep(0.06)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert flaky.calls >= 2
