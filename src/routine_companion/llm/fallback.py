# src/routine_companion/llm/fallback.py

from __future__ import annotations

import re
from collections.abc import Sequence

from ..tasks.due import find_overdue
from ..tasks.task_models import Task

ACTION_LINE = "Action: pick one task and start a 25m focus block."
EMPTY_REPLY = "Stay focused. What is the next single action?"

_SEGMENT_SPLIT = re.compile(r"[,.;]")


def fallback_reply(prompt: str, tasks: Sequence[Task], now: float) -> str:
    """
    Deterministic, network-free assistant reply.

    Lines (each omitted when empty), bulleted with "- ":
    - "Overdue (<n>): <first 3 titles>"
    - "Next: <first clause of the prompt>"
    - a constant focus-block action line

    With no overdue tasks and nothing usable in the prompt there is nothing to
    plan around, so the reply is the short "stay focused" nudge instead.
    """
    lines: list[str] = []

    overdue = find_overdue(tasks, now)
    if overdue:
        titles = ", ".join(t.title for t in overdue[:3])
        lines.append(f"Overdue ({len(overdue)}): {titles}")

    if prompt:
        segment = _SEGMENT_SPLIT.split(prompt, maxsplit=1)[0].strip()
        if segment:
            lines.append(f"Next: {segment}")

    if not lines:
        return EMPTY_REPLY

    lines.append(ACTION_LINE)
    return "\n".join(f"- {line}" for line in lines)
