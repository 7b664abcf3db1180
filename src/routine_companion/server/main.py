# src/routine_companion/server/main.py

"""Run the agent HTTP endpoint with uvicorn."""

from __future__ import annotations

import logging

import uvicorn

from ..cli.bootstrap import create_agent_gateway
from ..config import get_settings
from ..logging_setup import setup_logging
from .agent_api import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    console_level = getattr(logging, str(settings.log_level).upper(), logging.INFO)
    setup_logging(
        log_dir=settings.data_dir,
        log_file="agent-api.log",
        console_level=console_level,
        show=("uvicorn.error",),
    )

    gateway = create_agent_gateway(settings, allow_http=False)
    logger.info(
        "Starting agent API on %s:%s (mode=%s)",
        settings.server_host,
        settings.server_port,
        "live" if gateway is not None else "absent",
    )
    uvicorn.run(
        create_app(gateway),
        host=settings.server_host,
        port=settings.server_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
