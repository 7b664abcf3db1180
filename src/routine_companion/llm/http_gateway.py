# src/routine_companion/llm/http_gateway.py

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from ..core.result import Err, Ok, Result
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)


class HttpAgentGateway:
    """
    Talks to a remote agent endpoint: POST {prompt, tasks} -> {reply}.

    Non-2xx, an {error} body, transport errors and malformed JSON all map to Err.
    """

    def __init__(
        self,
        url: str,
        *,
        connect_timeout: float = 5.0,
        read_timeout: float = 20.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not url or not url.strip():
            raise ValueError("agent URL is required")
        self._url = url.strip()
        self._client = client or httpx.Client(timeout=httpx.Timeout(read_timeout, connect=connect_timeout))

    def close(self) -> None:
        self._client.close()

    def ask(self, prompt: str, tasks: Sequence[Task]) -> Result[str]:
        body = {"prompt": prompt, "tasks": [t.to_dict() for t in tasks]}
        try:
            resp = self._client.post(self._url, json=body)
        except httpx.HTTPError as e:
            logger.info("Agent request failed url=%s (%s)", self._url, e.__class__.__name__)
            return Err(f"agent unreachable: {e.__class__.__name__}")

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not resp.is_success:
            detail = data.get("error") if isinstance(data, dict) else None
            logger.info("Agent returned status=%s error=%s", resp.status_code, detail)
            return Err(str(detail or f"agent returned HTTP {resp.status_code}"))

        if not isinstance(data, dict):
            return Err("agent returned a non-JSON response")
        if data.get("error"):
            return Err(str(data["error"]))

        reply = data.get("reply")
        if not isinstance(reply, str):
            return Err("agent response has no reply")
        return Ok(reply)
