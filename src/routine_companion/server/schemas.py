# src/routine_companion/server/schemas.py

"""Request models for the agent endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..tasks.task_models import Task


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(word.capitalize() for word in rest)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=_to_camel, populate_by_name=True)


class TaskIn(CamelModel):
    id: str
    title: str
    due_at: str | None = None
    recurrence: str = "once"
    completed: bool = False
    last_reminded_at: str | None = None

    def to_task(self) -> Task:
        # Blank id/title raise ValueError here.
        return Task.from_dict(self.model_dump(by_alias=True))


class AgentRequest(CamelModel):
    prompt: str = ""
    tasks: list[TaskIn] = Field(default_factory=list)
