# src/routine_companion/server/agent_api.py

"""
HTTP agent endpoint.

POST /api/agent  {prompt, tasks} -> {reply}

- remote model configured: its reply (200) or {error} (502) when it fails
- no remote model: the deterministic fallback reply (200)
- body that does not match AgentRequest: {error} (400), only that request fails
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.ports import AgentGateway
from ..core.result import Err, Ok
from ..llm.fallback import fallback_reply
from ..tasks.task_models import Task
from .schemas import AgentRequest

logger = logging.getLogger(__name__)

INVALID_BODY_ERROR = "invalid request body"


def _to_tasks(body: AgentRequest) -> list[Task]:
    tasks: list[Task] = []
    for item in body.tasks:
        try:
            tasks.append(item.to_task())
        except ValueError:
            logger.debug("Ignoring task without id/title: %r", item)
    return tasks


def create_app(
    gateway: AgentGateway | None = None,
    *,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    app = FastAPI(title="Routine Companion Agent API")

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected %s request: %s", request.url.path, exc.errors())
        return JSONResponse({"error": INVALID_BODY_ERROR}, status_code=400)

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok", "mode": "live" if gateway is not None else "absent"}

    @app.post("/api/agent")
    async def agent(body: AgentRequest) -> JSONResponse:
        tasks = _to_tasks(body)

        if gateway is None:
            return JSONResponse({"reply": fallback_reply(body.prompt, tasks, clock())})

        result = await run_in_threadpool(gateway.ask, body.prompt, tasks)
        match result:
            case Ok(value=reply):
                return JSONResponse({"reply": reply})
            case Err(reason=reason):
                logger.warning("Agent call failed: %s", reason)
                return JSONResponse({"error": reason}, status_code=502)

    return app
