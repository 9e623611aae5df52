"""Custom error classes for the log forwarder."""

from typing import Optional, Dict, Any


class LogForwarderError(Exception):
    """Base exception for log forwarder errors."""

    pass


class LogSinkError(LogForwarderError):
    """A record could not be persisted by the remote sink."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize LogSinkError.

        Args:
            message: Error message
            status_code: HTTP status code returned by the sink, if any
            response_data: Raw response data from the sink
        """
        super().__init__(message)
        self.status_code: Optional[int] = status_code
        self.response_data: Dict[str, Any] = response_data or {}
        self.message: str = message

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.status_code:
            return f"Log sink error {self.status_code}: {self.message}"
        return f"Log sink error: {self.message}"


class SinkUnavailableError(LogSinkError):
    """Sink unreachable - connection refused, DNS failure or timeout."""

    pass


class SinkRejectedError(LogSinkError):
    """Sink answered with a non-2xx status."""

    pass


class InterceptionError(LogForwarderError):
    """Log interception could not be installed."""

    pass
