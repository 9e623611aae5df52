"""Core infrastructure module.

This module exports configuration, logging setup and exceptions.
Never imports from forwarding - only from external libraries.
"""

from .config import Settings, get_settings, get_global_settings
from .exceptions import (
    LogForwarderError,
    LogSinkError,
    SinkUnavailableError,
    SinkRejectedError,
    InterceptionError,
)
from .logging import configure_structlog, stdlib_level

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "get_global_settings",
    # Exceptions
    "LogForwarderError",
    "LogSinkError",
    "SinkUnavailableError",
    "SinkRejectedError",
    "InterceptionError",
    # Logging
    "configure_structlog",
    "stdlib_level",
]
