"""Log forwarding: intercept diagnostic output, queue it and drain it to a remote sink."""

from .bootstrap import (
    build_sink,
    create_logging_context,
    get_logging_context,
    install_logging,
    record,
    uninstall_logging,
)
from .forwarding import (
    Drainer,
    DrainerState,
    ForwarderStatus,
    HttpLogSink,
    LoggingContext,
    LogInterceptor,
    LogLevel,
    LogQueue,
    LogRecord,
    LogSink,
)

__all__ = [
    # Bootstrap
    "build_sink",
    "create_logging_context",
    "get_logging_context",
    "install_logging",
    "record",
    "uninstall_logging",
    # Forwarding
    "Drainer",
    "DrainerState",
    "ForwarderStatus",
    "HttpLogSink",
    "LoggingContext",
    "LogInterceptor",
    "LogLevel",
    "LogQueue",
    "LogRecord",
    "LogSink",
]
