"""Record queue, drainer, sinks and interception."""

from .records import LogLevel, LogRecord
from .queue import LogQueue
from .sink import LogSink, HttpLogSink, DiscardingLogSink
from .drainer import Drainer, DrainerState
from .context import LoggingContext, ForwarderStatus, format_echo_line
from .interception import (
    ForwardingHandler,
    ForwardingProcessor,
    LogInterceptor,
    StdoutRedirect,
    get_active_interceptor,
)

__all__ = [
    "LogLevel",
    "LogRecord",
    "LogQueue",
    "LogSink",
    "HttpLogSink",
    "DiscardingLogSink",
    "Drainer",
    "DrainerState",
    "LoggingContext",
    "ForwarderStatus",
    "format_echo_line",
    "ForwardingHandler",
    "ForwardingProcessor",
    "LogInterceptor",
    "StdoutRedirect",
    "get_active_interceptor",
]
