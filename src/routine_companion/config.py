# src/routine_companion/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

- One Settings object for the whole app.
- No secrets required at import time: without an API key the assistant
  simply runs in offline (fallback) mode.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "ROUTINE"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Switches ----
    tts_mode: bool
    console_enabled: bool

    # ---- Agent / LLM ----
    openai_api_key: str | None
    openai_base_url: str
    llm_models: list[str]
    agent_url: str | None
    agent_connect_timeout_seconds: float
    agent_read_timeout_seconds: float

    # ---- Reminders ----
    poll_interval_seconds: float
    min_reminder_interval_ms: int
    default_reminder_interval_ms: int
    snooze_minutes: int
    recurrence_rollover: bool

    # ---- TTS ----
    speaker_wav: str
    xtts_speaker_name: str
    xtts_language: str

    # ---- Agent HTTP endpoint ----
    server_host: str
    server_port: int

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_dir: Path

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "routine") or "routine"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        tts_mode = _env_bool(_k("TTS_MODE"), False)
        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        # The plain OPENAI_API_KEY is honoured too, like the OpenAI SDK does.
        openai_api_key = _first_env(_k("OPENAI_API_KEY"), "OPENAI_API_KEY", default=None)
        openai_base_url = _env(_k("OPENAI_BASE_URL"), "https://api.openai.com/v1")
        llm_models = _env_list(_k("LLM_MODELS"), ["gpt-4o-mini"])
        agent_url = _first_env(_k("AGENT_URL"), default=None)

        agent_connect_timeout_seconds = _env_float(_k("AGENT_CONNECT_TIMEOUT_SECONDS"), 5.0)
        agent_read_timeout_seconds = _env_float(_k("AGENT_READ_TIMEOUT_SECONDS"), 20.0)

        poll_interval_seconds = _env_float(_k("POLL_INTERVAL_SECONDS"), 120.0)
        min_reminder_interval_ms = _env_int(_k("MIN_REMINDER_INTERVAL_MS"), 60_000)
        default_reminder_interval_ms = _env_int(_k("DEFAULT_REMINDER_INTERVAL_MS"), 300_000)
        snooze_minutes = _env_int(_k("SNOOZE_MINUTES"), 10)
        recurrence_rollover = _env_bool(_k("RECURRENCE_ROLLOVER"), True)

        speaker_wav = _env(_k("SPEAKER_WAV"), "")
        xtts_speaker_name = _env(_k("XTTS_SPEAKER_NAME"), "Ana Florence")
        xtts_language = _env(_k("XTTS_LANGUAGE"), "en")

        server_host = _env(_k("SERVER_HOST"), "127.0.0.1")
        server_port = _env_int(_k("SERVER_PORT"), 8000)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/routine"))
        store_dir = _env_path(_k("STORE_DIR"), data_dir / "store")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            tts_mode=tts_mode,
            console_enabled=console_enabled,
            openai_api_key=openai_api_key,
            openai_base_url=openai_base_url,
            llm_models=llm_models,
            agent_url=agent_url,
            agent_connect_timeout_seconds=agent_connect_timeout_seconds,
            agent_read_timeout_seconds=max(agent_read_timeout_seconds, agent_connect_timeout_seconds),
            poll_interval_seconds=poll_interval_seconds,
            min_reminder_interval_ms=min_reminder_interval_ms,
            default_reminder_interval_ms=default_reminder_interval_ms,
            snooze_minutes=snooze_minutes,
            recurrence_rollover=recurrence_rollover,
            speaker_wav=speaker_wav,
            xtts_speaker_name=xtts_speaker_name,
            xtts_language=xtts_language,
            server_host=server_host,
            server_port=server_port,
            data_dir=data_dir,
            store_dir=store_dir,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
