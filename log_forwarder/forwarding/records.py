"""Log record value type and level enumeration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class LogLevel(str, Enum):
    """Closed set of forwarded log levels."""

    TRACE = "trace"
    INFO = "info"
    LOG = "log"
    WARN = "warn"
    ERROR = "error"

    @classmethod
    def _missing_(cls, value: object) -> Optional["LogLevel"]:
        if isinstance(value, str):
            name = value.strip().lower()
            if name in _ALIASES:
                return _ALIASES[name]
            for member in cls:
                if member.value == name:
                    return member
        return None

    @property
    def label(self) -> str:
        """Upper-case label padded to a fixed width for echo lines."""
        return self.value.upper().ljust(_LABEL_WIDTH)

    @classmethod
    def from_stdlib(cls, levelno: int) -> "LogLevel":
        """Map a stdlib logging level number onto the closest member."""
        if levelno < logging.INFO:
            return cls.TRACE
        if levelno == logging.INFO:
            return cls.INFO
        if levelno < logging.WARNING:
            return cls.LOG
        if levelno < logging.ERROR:
            return cls.WARN
        return cls.ERROR


_ALIASES: Dict[str, LogLevel] = {
    "debug": LogLevel.TRACE,
    "information": LogLevel.INFO,
    "informational": LogLevel.INFO,
    "warning": LogLevel.WARN,
    "critical": LogLevel.ERROR,
    "fatal": LogLevel.ERROR,
    "exception": LogLevel.ERROR,
}

_LABEL_WIDTH = max(len(member.value) for member in LogLevel)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LogRecord:
    """A single diagnostic call, captured at call time.

    Records are never mutated after construction; only their position
    in the queue changes.
    """

    message: str
    level: LogLevel = LogLevel.INFO
    data: Any = None
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def create(
        cls,
        message: Any,
        level: LogLevel | str = LogLevel.INFO,
        data: Any = None,
        timestamp: Optional[datetime] = None,
    ) -> "LogRecord":
        """Build a record, coercing the message and level."""
        return cls(
            message=message if isinstance(message, str) else str(message),
            level=LogLevel(level),
            data=data,
            timestamp=timestamp or _utcnow(),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Wire shape sent to the remote sink."""
        return {
            "message": self.message,
            "level": self.level.value,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }
