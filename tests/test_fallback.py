# tests/test_fallback.py

from __future__ import annotations

from routine_companion.llm.fallback import ACTION_LINE, EMPTY_REPLY, fallback_reply
from routine_companion.tasks.due import format_timestamp
from routine_companion.tasks.task_models import Recurrence, Task

from .fakes import NOW


def _overdue(title: str, i: int = 0) -> Task:
    return Task(id=f"o{i}", title=title, due_at=format_timestamp(NOW - 3600), recurrence=Recurrence.ONCE)


def test_pay_rent_scenario_is_three_bullets_and_deterministic() -> None:
    tasks = [_overdue("Pay rent")]

    reply = fallback_reply("buy milk, call mom", tasks, NOW)

    assert reply == (
        "- Overdue (1): Pay rent\n"
        "- Next: buy milk\n"
        "- Action: pick one task and start a 25m focus block."
    )
    assert fallback_reply("buy milk, call mom", tasks, NOW) == reply


def test_empty_input_is_the_stay_focused_nudge() -> None:
    assert fallback_reply("", [], NOW) == EMPTY_REPLY
    assert EMPTY_REPLY == "Stay focused. What is the next single action?"


def test_prompt_split_on_period_and_semicolon() -> None:
    assert fallback_reply("  plan the week; then rest", [], NOW) == f"- Next: plan the week\n- {ACTION_LINE}"
    assert fallback_reply("Email Bob. Then lunch", [], NOW).startswith("- Next: Email Bob\n")


def test_overdue_lists_count_and_first_three_titles() -> None:
    tasks = [_overdue(t, i) for i, t in enumerate(["a", "b", "c", "d", "e"])]
    tasks.append(Task(id="done", title="done", due_at=format_timestamp(NOW - 10), completed=True))
    tasks.append(Task(id="later", title="later", due_at=format_timestamp(NOW + 10)))

    reply = fallback_reply("", tasks, NOW)

    assert reply == f"- Overdue (5): a, b, c\n- {ACTION_LINE}"


def test_prompt_without_a_usable_clause_adds_no_next_line() -> None:
    assert fallback_reply(" , later", [], NOW) == EMPTY_REPLY
    assert fallback_reply("   ", [_overdue("x")], NOW) == f"- Overdue (1): x\n- {ACTION_LINE}"


def test_garbage_due_dates_never_count_as_overdue() -> None:
    tasks = [Task(id="g", title="garbage", due_at="someday")]
    assert fallback_reply("", tasks, NOW) == EMPTY_REPLY
