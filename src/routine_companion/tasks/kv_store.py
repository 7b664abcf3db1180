# src/routine_companion/tasks/kv_store.py

from __future__ import annotations

import contextlib
import logging
import os
import re
from pathlib import Path

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"[^A-Za-z0-9._-]+")


class FileKeyValueStore:
    """
    Directory-backed key-value store: one file per key.

    Writes are atomic (tmp file + os.replace) and the files are made private,
    since chat history may contain personal content.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        name = _SAFE_KEY.sub("_", key).strip("._") or "default"
        return self._root / f"{name}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text("utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, "utf-8")
        os.replace(tmp, path)
        with contextlib.suppress(OSError):
            os.chmod(path, 0o600)
        logger.debug("KV write key=%s bytes=%d", key, len(value))
