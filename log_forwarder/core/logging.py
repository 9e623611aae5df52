"""Logging configuration using structlog.

This module provides structured logging setup for the application.
"""

import structlog
import logging
from typing import Any, Callable

from structlog import contextvars as structlog_contextvars

TRACE = 5

logging.addLevelName(TRACE, "TRACE")


def stdlib_level(log_level: str) -> int:
    """
    Resolve a level name to a stdlib level number.

    :param log_level: Log level (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL)
    :returns: Numeric level, INFO for unknown names
    """
    name = log_level.strip().upper()
    if name == "TRACE":
        return TRACE
    return getattr(logging, name, logging.INFO)


def configure_structlog(final_processor: Callable[..., Any]) -> None:
    """
    Configure structlog for structured logging.

    :param final_processor: Processor that consumes the event
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog_contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            final_processor,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Interception can be removed again, so loggers must not pin the chain
        cache_logger_on_first_use=False,
    )
