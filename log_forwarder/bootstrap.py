"""Wiring of settings, sink, context and interception for the process."""

from __future__ import annotations

from typing import Any, Optional, TextIO

import structlog

from log_forwarder.core.config import Settings, get_global_settings
from log_forwarder.core.logging import stdlib_level
from log_forwarder.forwarding.context import LoggingContext
from log_forwarder.forwarding.interception import LogInterceptor
from log_forwarder.forwarding.records import LogLevel
from log_forwarder.forwarding.sink import DiscardingLogSink, HttpLogSink, LogSink

logger = structlog.get_logger(__name__)

_context: Optional[LoggingContext] = None
_interceptor: Optional[LogInterceptor] = None


def build_sink(settings: Settings) -> LogSink:
    """Create the sink selected by settings."""
    if settings.log_sink_url:
        return HttpLogSink(settings.log_sink_url, timeout=settings.log_sink_timeout)
    return DiscardingLogSink()


def create_logging_context(
    settings: Settings,
    sink: Optional[LogSink] = None,
    stream: Optional[TextIO] = None,
) -> LoggingContext:
    """Build a logging context from settings without installing it."""
    return LoggingContext(
        sink or build_sink(settings),
        stream=stream,
        retry_delay=settings.log_retry_delay,
        reschedule_delay=settings.log_reschedule_delay,
        retry_limit=settings.log_retry_limit,
    )


def install_logging(
    settings: Optional[Settings] = None,
    *,
    sink: Optional[LogSink] = None,
    stream: Optional[TextIO] = None,
) -> LoggingContext:
    """
    Create the process-wide context and intercept all diagnostic output.

    Calling this again returns the already installed context unchanged.

    :param settings: Settings to use (global settings if None)
    :param sink: Sink override, mostly for tests
    :param stream: Original output channel override (default: sys.stderr)
    :returns: The installed logging context
    """
    global _context, _interceptor
    if _context is not None:
        return _context

    settings = settings or get_global_settings()
    context = create_logging_context(settings, sink=sink, stream=stream)
    interceptor = LogInterceptor(
        context,
        excluded_loggers=settings.log_excluded_loggers_list,
        level=stdlib_level(settings.log_level),
        capture_stdout=settings.log_capture_stdout,
    )
    interceptor.install()

    _context, _interceptor = context, interceptor
    logger.info(
        "Log forwarding installed",
        sink=type(context.sink).__name__,
        retry_delay=settings.log_retry_delay,
        retry_limit=settings.log_retry_limit,
    )
    return context


async def uninstall_logging() -> None:
    """Stop draining, restore original output and close the sink."""
    global _context, _interceptor
    if _context is None:
        return

    context, interceptor = _context, _interceptor
    _context, _interceptor = None, None

    # Flushes a partial stdout line into the queue before draining stops
    if interceptor is not None:
        interceptor.uninstall()
    await context.stop()
    close = getattr(context.sink, "close", None)
    if close is not None:
        await close()
    logger.info("Log forwarding removed", pending=len(context.queue))


def get_logging_context() -> Optional[LoggingContext]:
    """Return the installed process-wide context, if any."""
    return _context


def record(message: Any, level: LogLevel | str = LogLevel.INFO, data: Any = None) -> None:
    """Record a diagnostic message through the installed context."""
    if _context is None:
        raise RuntimeError("Log forwarding is not installed; call install_logging() first")
    _context.record(message, level, data)
