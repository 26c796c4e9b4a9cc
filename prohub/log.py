"""Process-wide logging setup.

Modules log through stdlib `logging.getLogger(__name__)`; structlog shares
the same handlers so both end up in one stream. Production gets one JSON
object per line, development a coloured console.
"""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(level: str, *, json_output: bool = False) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        stream=sys.stdout,
        force=True,
    )
    # Driver chatter at DEBUG drowns the app's own lines
    for noisy in ("asyncio", "httpcore", "httpx"):
        logging.getLogger(noisy).setLevel(max(logging.INFO, getattr(logging, level)))

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
