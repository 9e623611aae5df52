"""Process-wide interception of diagnostic output.

Installing a :class:`LogInterceptor` routes every diagnostic channel of the
process into a :class:`LoggingContext`:

- stdlib ``logging`` through a single root :class:`ForwardingHandler`
- ``structlog`` through :class:`ForwardingProcessor` at the end of the chain
- optionally ``sys.stdout`` (plain ``print`` calls) through :class:`StdoutRedirect`

Everything the interceptor replaces is saved once on install and restored
on uninstall.
"""

from __future__ import annotations

import io
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, MutableMapping, Optional, Tuple

import structlog

from log_forwarder.core.exceptions import InterceptionError
from log_forwarder.core.logging import configure_structlog
from .context import LoggingContext
from .records import LogLevel, LogRecord

# Attributes every stdlib LogRecord carries; anything else came from ``extra=``
_STDLIB_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}

_METHOD_LEVELS: Dict[str, LogLevel] = {
    "msg": LogLevel.LOG,
    "log": LogLevel.LOG,
}

_active_interceptor: Optional["LogInterceptor"] = None


def is_excluded(logger_name: Optional[str], prefixes: Iterable[str]) -> bool:
    """True if the logger is one of the prefixes or a child of one."""
    if not logger_name:
        return False
    return any(
        logger_name == prefix or logger_name.startswith(prefix + ".")
        for prefix in prefixes
    )


def format_exception(exc_info) -> Dict[str, Any]:
    """Format exception information.

    Args:
        exc_info: Exception info tuple.

    Returns:
        Formatted exception data.
    """
    exc_type, exc_value, exc_tb = exc_info
    return {
        "type": exc_type.__name__ if exc_type else None,
        "message": str(exc_value) if exc_value else None,
        "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
    }


class ForwardingHandler(logging.Handler):
    """Root handler turning stdlib log records into forwarded records."""

    def __init__(
        self,
        context: LoggingContext,
        excluded_loggers: Iterable[str] = (),
        level: int = logging.NOTSET,
    ):
        super().__init__(level)
        self.context = context
        self.excluded_loggers: Tuple[str, ...] = tuple(excluded_loggers)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
            level = LogLevel.from_stdlib(record.levelno)
            timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
            data = self._extract_data(record)

            if is_excluded(record.name, self.excluded_loggers):
                self.context.echo(LogRecord.create(message, level, data, timestamp))
            else:
                self.context.record(message, level, data, timestamp)
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)

    @staticmethod
    def _extract_data(record: logging.LogRecord) -> Dict[str, Any]:
        data: Dict[str, Any] = {"logger": record.name}
        for key, value in vars(record).items():
            if key not in _STDLIB_RECORD_ATTRS and not key.startswith("_"):
                data[key] = value
        if record.exc_info:
            data["exception"] = format_exception(record.exc_info)
        return data


class ForwardingProcessor:
    """Last structlog processor: forwards the event and drops it.

    The context's echo replaces structlog's own rendering, so the event
    never reaches a renderer.
    """

    def __init__(self, context: LoggingContext, excluded_loggers: Iterable[str] = ()):
        self.context = context
        self.excluded_loggers: Tuple[str, ...] = tuple(excluded_loggers)

    def __call__(
        self, _: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        fields = dict(event_dict)
        message = fields.pop("event", "")
        fields.pop("level", None)
        level = self._level_for(method_name)
        data = fields or None

        if is_excluded(fields.get("logger"), self.excluded_loggers):
            self.context.echo(LogRecord.create(message, level, data))
        else:
            self.context.record(message, level, data)
        raise structlog.DropEvent

    @staticmethod
    def _level_for(method_name: str) -> LogLevel:
        if method_name in _METHOD_LEVELS:
            return _METHOD_LEVELS[method_name]
        try:
            return LogLevel(method_name)
        except ValueError:
            return LogLevel.INFO


class StdoutRedirect(io.TextIOBase):
    """Line-buffered stand-in for ``sys.stdout`` recording each line."""

    def __init__(self, context: LoggingContext, original_stream, level: LogLevel = LogLevel.LOG):
        super().__init__()
        self.context = context
        self.original_stream = original_stream
        self.level = level
        self._buffer = ""

    @property
    def encoding(self) -> str:
        return getattr(self.original_stream, "encoding", None) or "utf-8"

    def writable(self) -> bool:
        return True

    def isatty(self) -> bool:
        return False

    def write(self, text: str) -> int:
        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            self.context.record(line, self.level, stream=self.original_stream)
        return len(text)

    def flush(self) -> None:
        # Partial lines wait for their newline
        pass

    def drain_partial(self) -> None:
        """Record whatever is left without a trailing newline."""
        if self._buffer:
            line, self._buffer = self._buffer, ""
            self.context.record(line, self.level, stream=self.original_stream)


class LogInterceptor:
    """Installs and removes process-wide interception for one context."""

    def __init__(
        self,
        context: LoggingContext,
        *,
        excluded_loggers: Iterable[str] = ("httpx", "httpcore", "log_forwarder"),
        level: int = logging.INFO,
        capture_stdout: bool = False,
    ):
        """
        Initialize the interceptor.

        Args:
            context: Logging context receiving intercepted calls
            excluded_loggers: Logger prefixes echoed locally but never forwarded
            level: Root stdlib level while installed
            capture_stdout: Also redirect sys.stdout writes
        """
        self.context = context
        self.excluded_loggers: List[str] = list(excluded_loggers)
        self.level = level
        self.capture_stdout = capture_stdout

        self.handler = ForwardingHandler(context, self.excluded_loggers)
        self.processor = ForwardingProcessor(context, self.excluded_loggers)
        self._saved_handlers: Optional[List[logging.Handler]] = None
        self._saved_level: Optional[int] = None
        self._saved_structlog: Optional[Dict[str, Any]] = None
        self._saved_stdout = None
        self._stdout_redirect: Optional[StdoutRedirect] = None

    @property
    def installed(self) -> bool:
        return _active_interceptor is self

    def install(self) -> bool:
        """Install interception; returns False if this interceptor already is."""
        global _active_interceptor
        if _active_interceptor is self:
            return False
        if _active_interceptor is not None:
            raise InterceptionError("Another log interceptor is already installed")

        root = logging.getLogger()
        self._saved_handlers = list(root.handlers)
        self._saved_level = root.level
        for handler in self._saved_handlers:
            root.removeHandler(handler)
        root.addHandler(self.handler)
        root.setLevel(self.level)

        self._saved_structlog = dict(structlog.get_config())
        self._saved_structlog["processors"] = list(self._saved_structlog["processors"])
        configure_structlog(self.processor)

        if self.capture_stdout:
            self._saved_stdout = sys.stdout
            self._stdout_redirect = StdoutRedirect(
                self.context, getattr(sys.stdout, "original_stream", sys.stdout)
            )
            sys.stdout = self._stdout_redirect

        _active_interceptor = self
        return True

    def uninstall(self) -> bool:
        """Restore everything install() replaced; returns False if not installed."""
        global _active_interceptor
        if _active_interceptor is not self:
            return False

        if self._stdout_redirect is not None:
            self._stdout_redirect.drain_partial()
            sys.stdout = self._saved_stdout
            self._stdout_redirect = None
            self._saved_stdout = None

        if self._saved_structlog is not None:
            structlog.configure(**self._saved_structlog)
            self._saved_structlog = None

        root = logging.getLogger()
        root.removeHandler(self.handler)
        for handler in self._saved_handlers or []:
            root.addHandler(handler)
        if self._saved_level is not None:
            root.setLevel(self._saved_level)
        self._saved_handlers = None
        self._saved_level = None

        _active_interceptor = None
        return True


def get_active_interceptor() -> Optional[LogInterceptor]:
    """Return the currently installed interceptor, if any."""
    return _active_interceptor
