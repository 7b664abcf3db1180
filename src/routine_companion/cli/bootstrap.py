# src/routine_companion/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store, scheduler, worker, agent, notifier, TTS),
- subscribes the reminder scheduler to task changes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..config import get_settings
from ..core.notify import ConsoleNotifier, DesktopNotifier, FanoutNotifier
from ..core.ports import AgentGateway
from ..core.state import AppState
from ..llm.client import OpenAIAgentGateway
from ..llm.http_gateway import HttpAgentGateway
from ..tasks.kv_store import FileKeyValueStore
from ..tasks.reminder_worker import ReminderWorker
from ..tasks.reminders import ReminderScheduler
from ..tasks.task_store import TaskStore
from ..tts.engine import TTSEngine

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_dir.mkdir(parents=True, exist_ok=True)


def create_agent_gateway(settings, *, allow_http: bool = True) -> AgentGateway | None:
    """
    Pick the agent mode from configuration.

    - ROUTINE_AGENT_URL set (and allowed) -> remote agent endpoint over HTTP
    - an OpenAI API key set -> direct chat-completion calls
    - neither -> None ("absent" mode, fallback replies only)
    """
    connect_s = float(getattr(settings, "agent_connect_timeout_seconds", 5.0))
    read_s = float(getattr(settings, "agent_read_timeout_seconds", 20.0))

    agent_url = (getattr(settings, "agent_url", None) or "").strip()
    if allow_http and agent_url:
        logger.info("Agent mode: http (%s)", agent_url)
        return HttpAgentGateway(agent_url, connect_timeout=connect_s, read_timeout=read_s)

    if (getattr(settings, "openai_api_key", None) or "").strip():
        try:
            gateway = OpenAIAgentGateway.from_settings(settings)
        except ValueError as e:
            logger.warning("Agent misconfigured (%s); using offline fallback.", e)
            return None
        logger.info("Agent mode: openai (models=%s)", ", ".join(settings.llm_models))
        return gateway

    logger.info("Agent mode: absent (no API key); replies use the offline fallback.")
    return None


def create_initial_state(*, settings=None, emit: Callable[[str], None] = print) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().

    The store is NOT loaded here; call state.store.load() once the event loop
    (and with it the reminder worker) is running, so the initial resync reaches it.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    notifier = FanoutNotifier([ConsoleNotifier(emit), DesktopNotifier(settings.app_name)])
    worker = ReminderWorker(on_fire=lambda _task_id, title: notifier.notify("Reminder", title))

    store = TaskStore(FileKeyValueStore(settings.store_dir))
    scheduler = ReminderScheduler(
        worker,
        min_interval_ms=settings.min_reminder_interval_ms,
        default_interval_ms=settings.default_reminder_interval_ms,
    )
    store.subscribe(scheduler.on_tasks_changed)

    return AppState(
        settings=settings,
        store=store,
        scheduler=scheduler,
        notifier=notifier,
        speaker=TTSEngine(enabled=settings.tts_mode, settings=settings),
        gateway=create_agent_gateway(settings),
        worker=worker,
        tts_enabled=settings.tts_mode,
    )
