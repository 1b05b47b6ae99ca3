"""
Structured logging setup (structlog).

Development gets coloured console output; every other environment
emits one JSON object per line so log shippers can parse it.

Usage:
    from app.core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("File ingestion finished", rows=12, errors=0)
"""

from __future__ import annotations

import logging
import sys

import structlog

from app.core.config import settings


def setup_logging(level: str = "INFO") -> None:
    """Configure structlog and the stdlib root logger.  Safe to call twice."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=True,
    )
    # Uvicorn access logs are noisy at DEBUG
    logging.getLogger("uvicorn.access").setLevel(max(log_level, logging.INFO))

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.APP_ENV == "development"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Return a structlog logger bound to the given component name."""
    if name:
        return structlog.get_logger(name).bind(logger=name)
    return structlog.get_logger()
