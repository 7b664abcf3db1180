# src/routine_companion/cli/commands.py

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import cast

from ..core.state import AppState
from ..tasks.due import next_due_timestamp, parse_due_at
from ..tasks.task_models import Recurrence, Task
from ..tts.engine import TTSEngine

CommandEmitter = Callable[[str], None]
CommandReply = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandReply]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandReply]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases or []:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> CommandReply | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            return cast(CommandHandler3, handler)(state, args, emit)
        return cast(CommandHandler2, handler)(state, args)

    async def dispatch(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """Like handle(), but awaits handlers that do their work off the event loop."""
        reply = self.handle(state, line, emit)
        if inspect.isawaitable(reply):
            return await reply
        return reply

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _say(state: AppState, text: str) -> None:
    try:
        state.speaker.speak(text)
    except Exception:
        logger.debug("speak failed", exc_info=True)


def resolve_task_ref(state: AppState, ref: str) -> Task | None:
    """A task by 1-based position in /tasks, or by a unique id prefix."""
    tasks = state.store.list_tasks()
    ref = ref.strip()
    if ref.isdigit():
        idx = int(ref) - 1
        return tasks[idx] if 0 <= idx < len(tasks) else None
    matches = [t for t in tasks if t.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def format_due(task: Task) -> str:
    ts = parse_due_at(task.due_at)
    if ts is None:
        return "No due date"
    return "Due " + datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M")


def format_task_line(n: int, task: Task, now: float) -> str:
    mark = "x" if task.completed else " "
    flag = " (overdue)" if not task.completed and next_due_timestamp(task) <= now else ""
    return f"{n}. [{mark}] {task.title} - {format_due(task)} · {task.recurrence.value}{flag}  ({task.id[:8]})"


def parse_add_args(args: list[str]) -> tuple[str, str | None, Recurrence]:
    """
    "/add pay rent @2025-01-31T09:00 weekly" -> ("pay rent", "2025-01-31T09:00", WEEKLY)

    Raises ValueError for a missing title or an unparsable due date.
    """
    words = list(args)
    recurrence = Recurrence.ONCE
    if words and words[-1].lower() in {r.value for r in Recurrence}:
        recurrence = Recurrence(words.pop().lower())

    due_at: str | None = None
    title_words: list[str] = []
    for w in words:
        if w.startswith("@") and len(w) > 1:
            due_at = w[1:]
        else:
            title_words.append(w)

    title = " ".join(title_words).strip()
    if not title:
        raise ValueError("missing title")
    if due_at is not None and parse_due_at(due_at) is None:
        raise ValueError(f"could not parse due date: {due_at}")
    return title, due_at, recurrence


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    tasks = state.store.list_tasks()
    open_count = sum(1 for t in tasks if not t.completed)
    agent = type(state.gateway).__name__ if state.gateway is not None else "offline fallback"
    poll = getattr(state.settings, "poll_interval_seconds", 120.0)
    return (
        "Status:\n"
        f"  Tasks: {len(tasks)} ({open_count} open)\n"
        f"  Assistant: {agent}\n"
        f"  Voice: {'ON' if state.tts_enabled else 'OFF'}\n"
        f"  Overdue check every: {poll:g}s"
    )


def cmd_tasks(state: AppState, args: list[str]) -> str:
    tasks = state.store.list_tasks()
    if not tasks:
        return "No tasks yet. Add one with /add <title> [@<due>] [once|daily|weekly]."
    now = state.clock()
    return "\n".join(format_task_line(i, t, now) for i, t in enumerate(tasks, start=1))


def cmd_add(state: AppState, args: list[str]) -> str:
    try:
        title, due_at, recurrence = parse_add_args(args)
    except ValueError as e:
        return f"Cannot add task: {e}.\nUsage: /add <title> [@<ISO datetime>] [once|daily|weekly]"

    task = state.store.add_task(title, due_at=due_at, recurrence=recurrence)
    _say(state, f"Added task: {task.title}")
    return f"Added: {task.title} - {format_due(task)} · {task.recurrence.value}"


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <number|id>"
    task = resolve_task_ref(state, args[0])
    if task is None:
        return f"No such task: {args[0]}"

    updated = state.store.toggle_task(task.id)
    if updated is None:
        return f"No such task: {args[0]}"
    if updated.completed:
        _say(state, f"Great job! Marked {updated.title} as done.")
        return f"Done: {updated.title}"
    return f"Reopened: {updated.title}"


def cmd_snooze(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /snooze <number|id> [minutes]"
    task = resolve_task_ref(state, args[0])
    if task is None:
        return f"No such task: {args[0]}"

    minutes = int(getattr(state.settings, "snooze_minutes", 10))
    if len(args) > 1:
        try:
            minutes = max(1, int(args[1]))
        except ValueError:
            return "Minutes must be a whole number."

    state.store.snooze_task(task.id, minutes)
    _say(state, f"Snoozed {task.title} for {minutes} minutes.")
    return f"Snoozed: {task.title} for {minutes} min"


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <number|id>"
    task = resolve_task_ref(state, args[0])
    if task is None or not state.store.delete_task(task.id):
        return f"No such task: {args[0]}"
    return f"Deleted: {task.title}"


def cmd_history(state: AppState, args: list[str]) -> str:
    limit = 10
    if args:
        with contextlib.suppress(ValueError):
            limit = max(1, int(args[0]))
    chat = state.store.list_chat()[-limit:]
    if not chat:
        return "No conversation yet."
    lines = []
    for m in chat:
        ts = datetime.fromtimestamp(m.ts / 1000).astimezone().strftime("%H:%M:%S")
        lines.append(f"{ts} · {m.role.value}: {m.content}")
    return "\n".join(lines)


async def cmd_tts(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /tts          -> show status
    /tts on       -> enable speech
    /tts off      -> disable speech
    """
    if not args:
        return f"TTS is currently {'ON' if state.tts_enabled else 'OFF'}. Use /tts on or /tts off."

    arg = args[0].lower()

    if arg in ("on", "1", "true", "yes"):
        if state.tts_enabled:
            return "TTS is already ON."
        if emit:
            with contextlib.suppress(Exception):
                emit("[TTS] Enabling... importing deps and loading model (may take a while).")
        # Model load takes seconds; it runs off the loop.
        engine = await asyncio.to_thread(TTSEngine, enabled=True, settings=state.settings)
        if not engine.enabled:
            return "TTS is not available (missing dependencies). Install the 'tts' extra."
        state.speaker = engine
        state.tts_enabled = True
        return "TTS enabled. Replies and reminders will be spoken."

    if arg in ("off", "0", "false", "no"):
        if not state.tts_enabled:
            return "TTS is already OFF."
        shutdown = getattr(state.speaker, "shutdown", None)
        if callable(shutdown):
            with contextlib.suppress(Exception):
                await asyncio.to_thread(shutdown)
        state.speaker = TTSEngine(enabled=False)
        state.tts_enabled = False
        return "TTS disabled."

    return "Usage: /tts on or /tts off."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show task counts, assistant mode and voice state.")
registry.register("tasks", cmd_tasks, help_text="List tasks.", aliases=["ls", "list"])
registry.register(
    "add", cmd_add, help_text="Add a task: /add <title> [@<ISO datetime>] [once|daily|weekly]."
)
registry.register("done", cmd_done, help_text="Toggle completion: /done <number|id>.", aliases=["toggle"])
registry.register("snooze", cmd_snooze, help_text="Push a task's due time: /snooze <number|id> [minutes].")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <number|id>.", aliases=["rm"])
registry.register("history", cmd_history, help_text="Show recent conversation: /history [n].")
registry.register("tts", cmd_tts, help_text="Enable/disable voice: /tts on | /tts off.")
