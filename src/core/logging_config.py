"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Loggers are created lazily so a later level change applies everywhere.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_LEVEL


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured JSON output.
    """
    if not structlog.is_configured():
        _configure_structlog(DEFAULT_LOG_LEVEL)
    return structlog.get_logger(name)


def configure_logging(level: str) -> None:
    """Apply the process-wide minimum log level.

    Args:
        level: Standard level name such as ``INFO`` or ``DEBUG``.
    """
    _configure_structlog(level)


def _configure_structlog(level: str) -> None:
    """Install processors and a filtering bound logger.

    Args:
        level: Standard level name.
    """
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        cache_logger_on_first_use=False,
    )


def _level_number(level: str) -> int:
    """Map a level name onto its stdlib numeric value."""
    level_number = logging.getLevelName(level.upper())
    if isinstance(level_number, int):
        return level_number
    return logging.INFO
