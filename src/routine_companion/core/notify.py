# src/routine_companion/core/notify.py

from __future__ import annotations

"""
Notification capabilities.

Detect-then-use: each notifier is safe to construct when its backend is
missing and then simply does nothing.
"""

import logging
import shutil
import subprocess
from collections.abc import Callable, Sequence
from datetime import datetime

from .ports import Notifier

logger = logging.getLogger(__name__)


class NullNotifier:
    def notify(self, title: str, body: str) -> None:
        return


class ConsoleNotifier:
    """Prints notifications through the connector's emit function."""

    def __init__(self, emit: Callable[[str], None] = print) -> None:
        self._emit = emit

    def notify(self, title: str, body: str) -> None:
        ts = datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")
        self._emit(f"[{ts}] [{title}] {body}")


class DesktopNotifier:
    """Desktop popups via notify-send, when it is installed."""

    def __init__(self, app_name: str = "routine") -> None:
        self._app_name = app_name
        self._binary = shutil.which("notify-send")
        if self._binary is None:
            logger.info("notify-send not found: desktop notifications disabled.")

    @property
    def available(self) -> bool:
        return self._binary is not None

    def notify(self, title: str, body: str) -> None:
        if self._binary is None:
            return
        try:
            subprocess.run(
                [self._binary, "--app-name", self._app_name, title, body],
                check=False,
                timeout=5,
            )
        except (OSError, subprocess.SubprocessError):
            logger.debug("notify-send failed", exc_info=True)


class FanoutNotifier:
    """Sends every notification to all children; one failing child does not stop the rest."""

    def __init__(self, notifiers: Sequence[Notifier]) -> None:
        self._notifiers = list(notifiers)

    def notify(self, title: str, body: str) -> None:
        for n in self._notifiers:
            try:
                n.notify(title, body)
            except Exception:
                logger.warning("Notifier %s failed", type(n).__name__, exc_info=True)
