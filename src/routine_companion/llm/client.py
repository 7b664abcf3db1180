# src/routine_companion/llm/client.py

from __future__ import annotations

import json
import logging
import time
from collections.abc import Sequence

import httpx
import openai
from openai import OpenAI

from ..core.result import Err, Ok, Result
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a concise, proactive daily routine assistant.
- You analyze tasks with due times and recurrence.
- You propose a compact plan with prioritized steps.
- You gently but firmly remind the user about overdue tasks.
- You avoid long paragraphs. Use short bullet points.
- If the user gives a vague request, produce a clear next action."""

EMPTY_COMPLETION_REPLY = "Done."

_BAD_MODEL_COOLDOWN_S = 3600.0


def _is_auth_error(exc: Exception) -> bool:
    return isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError))


def _is_rate_limit_error(exc: Exception) -> bool:
    return isinstance(exc, openai.RateLimitError)


def _is_connection_error(exc: Exception) -> bool:
    # APITimeoutError is a subclass of APIConnectionError.
    return isinstance(exc, (openai.APIConnectionError, httpx.TransportError))


def _is_not_found_error(exc: Exception) -> bool:
    return isinstance(exc, openai.NotFoundError)


def build_user_message(prompt: str, tasks: Sequence[Task]) -> str:
    tasks_json = json.dumps([t.to_dict() for t in tasks], ensure_ascii=False)
    return f"Tasks JSON: {tasks_json}\nUser: {prompt}"


class OpenAIAgentGateway:
    """
    Planning assistant backed by an OpenAI-compatible chat completion API.

    Behavior:
    - Tries models in the configured order.
    - 404 (model not available) -> remember for an hour, try next.
    - Rate limit / network / timeout -> try next.
    - Auth issues -> fail fast (no retries across models).
    - All failures come back as Err(reason); nothing is raised to the caller.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        models: Sequence[str],
        connect_timeout: float = 5.0,
        read_timeout: float = 20.0,
        client: OpenAI | None = None,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("OpenAI API key is required")
        self._models = [m.strip() for m in models if m and m.strip()]
        if not self._models:
            raise ValueError("LLM model list is empty")

        # No SDK retries: a failed call should fall back quickly instead of hanging the reply.
        self._client = client or OpenAI(
            api_key=api_key,
            base_url=base_url or None,
            timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
            max_retries=0,
        )
        self._bad_models: dict[str, float] = {}  # model -> retry_at (monotonic)

    @classmethod
    def from_settings(cls, settings) -> OpenAIAgentGateway:
        return cls(
            api_key=str(settings.openai_api_key or ""),
            base_url=str(getattr(settings, "openai_base_url", "") or ""),
            models=list(getattr(settings, "llm_models", []) or []),
            connect_timeout=float(getattr(settings, "agent_connect_timeout_seconds", 5.0)),
            read_timeout=float(getattr(settings, "agent_read_timeout_seconds", 20.0)),
        )

    def ask(self, prompt: str, tasks: Sequence[Task]) -> Result[str]:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_user_message(prompt, tasks)},
        ]

        last_reason = "All LLM models failed."
        now = time.monotonic()

        for model in self._models:
            retry_at = self._bad_models.get(model)
            if retry_at is not None and retry_at > now:
                continue

            logger.info("LLM: trying model=%s", model)
            t0 = time.monotonic()
            try:
                resp = self._client.chat.completions.create(
                    model=model,
                    messages=messages,
                    temperature=0.3,
                )
            except Exception as e:
                if _is_auth_error(e):
                    logger.warning("LLM: authentication failed on model=%s", model)
                    return Err("LLM authentication failed. Check ROUTINE_OPENAI_API_KEY.")

                if _is_not_found_error(e):
                    self._bad_models[model] = time.monotonic() + _BAD_MODEL_COOLDOWN_S
                    logger.info("LLM: model not available (404): %s", model)
                    last_reason = f"Model not available: {model}"
                elif _is_rate_limit_error(e):
                    logger.info("LLM: rate-limited on model=%s, trying next", model)
                    last_reason = "LLM is rate-limited. Try again later."
                elif _is_connection_error(e):
                    logger.info("LLM: network/timeout error on model=%s, trying next", model)
                    last_reason = "LLM network/timeout error."
                else:
                    logger.info("LLM: error on model=%s (%s), trying next", model, e.__class__.__name__)
                    last_reason = f"LLM error: {e.__class__.__name__}"
                continue

            content = None
            if resp.choices:
                content = resp.choices[0].message.content
            logger.info("LLM: reply from model=%s (%.2fs)", model, time.monotonic() - t0)
            return Ok((content or "").strip() or EMPTY_COMPLETION_REPLY)

        return Err(last_reason)
