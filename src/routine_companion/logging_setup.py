# src/routine_companion/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path

APP_LOGGER_PREFIX = "routine_companion."

# App loggers that run in the background and would interleave with the prompt.
QUIET_APP_LOGGERS: Mapping[str, int] = {
    "routine_companion.tasks.reminder_worker": logging.WARNING,
}

NOISY_LIBRARIES = ("httpx", "httpcore", "openai", "uvicorn.access")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console filter:
    - routine_companion logs pass, except the QUIET_APP_LOGGERS below their floor
    - loggers listed in `show` pass (e.g. uvicorn's startup lines for the server)
    - everything else, including 'py.warnings', only at ERROR+
    """

    def __init__(self, show: Iterable[str] = (), quiet: Mapping[str, int] = QUIET_APP_LOGGERS) -> None:
        super().__init__()
        self._show = tuple(show)
        self._quiet = dict(quiet)

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        for prefix, floor in self._quiet.items():
            if name.startswith(prefix):
                return record.levelno >= floor

        if name.startswith(APP_LOGGER_PREFIX) or name.startswith(self._show):
            return True

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/routine",
    log_file: str = "routine.log",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    show: Iterable[str] = (),
) -> Path:
    """
    Console handler (filtered) plus a full DEBUG log file under `log_dir`.

    Call once at startup; existing root handlers are replaced. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / log_file

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter(show=show))
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)

    for noisy in NOISY_LIBRARIES:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return log_path
