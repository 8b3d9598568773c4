"""Logging configuration for LifeQuest."""

import logging
import sys
from typing import Any

import structlog

from lifequest.config import settings

# Library loggers and the level they are held at
LIBRARY_LOG_LEVELS: dict[str, int] = {
    "asyncio": logging.WARNING,
    "aiogram": logging.INFO,
    "aiohttp": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "redis": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
}


def setup_logging() -> None:
    """Configure structured logging for the application."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # Context bound with bind_installation() lands on every event
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.log_format == "json":
        # JSON format for production
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Console format for development
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )
    quiet_library_loggers()


def quiet_library_loggers() -> None:
    """Hold chatty library loggers at their configured level."""
    for name, level in LIBRARY_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(level)


def bind_installation(installation_id: str) -> None:
    """Tag every following log event with the installation and its time zone."""
    structlog.contextvars.bind_contextvars(
        installation_id=installation_id,
        timezone=settings.timezone or "local",
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance for the given name."""
    return structlog.get_logger(name)
