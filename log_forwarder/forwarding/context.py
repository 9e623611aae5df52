"""Logging context shared by everything that emits diagnostics.

The context owns the pending-record queue and its drainer, and holds an
explicit reference to the original output channel. Every intercepted
call ends up in :meth:`LoggingContext.record`, which queues the record
for remote delivery and echoes it locally straight away, so operators see
output in real time even while the sink is unreachable.
"""

from __future__ import annotations

import sys
from datetime import datetime
from typing import Any, Dict, Optional, TextIO

from pydantic import BaseModel

from .drainer import Drainer, DrainerState
from .queue import LogQueue
from .records import LogLevel, LogRecord
from .sink import LogSink


class ForwarderStatus(BaseModel):
    """Point-in-time view of the forwarding pipeline."""

    state: DrainerState
    pending: int
    delivered: int
    failed_attempts: int
    dropped: int
    oldest_pending_at: Optional[datetime] = None


def format_echo_line(record: LogRecord) -> str:
    """Render the local echo line for a record."""
    return f"{record.timestamp.isoformat()} {record.level.label} {record.message}"


class LoggingContext:
    """Queue, drainer and original output channel for one process."""

    def __init__(
        self,
        sink: LogSink,
        *,
        stream: Optional[TextIO] = None,
        retry_delay: float = 30.0,
        reschedule_delay: float = 0.0,
        retry_limit: Optional[int] = None,
    ):
        """
        Initialize the logging context.

        Args:
            sink: Remote destination for records
            stream: Original output channel for the local echo (default: sys.stderr)
            retry_delay: Fixed backoff in seconds after a failed persist
            reschedule_delay: Delay in seconds between successful drain steps
            retry_limit: Consecutive failures before a record is dropped (None = never)
        """
        stream = stream if stream is not None else sys.stderr
        # Never echo into one of our own redirects
        self.original_stream: TextIO = getattr(stream, "original_stream", stream)
        self.queue = LogQueue()
        self.sink = sink
        self.drainer = Drainer(
            self.queue,
            sink,
            retry_delay=retry_delay,
            reschedule_delay=reschedule_delay,
            retry_limit=retry_limit,
            reporter=self._report_failure,
        )

    def record(
        self,
        message: Any,
        level: LogLevel | str = LogLevel.INFO,
        data: Any = None,
        timestamp: Optional[datetime] = None,
        stream: Optional[TextIO] = None,
    ) -> None:
        """Queue a record for the sink and echo it locally.

        ``stream`` overrides the echo channel for producers that captured
        their own original channel, such as a redirected stdout.
        """
        record = LogRecord.create(message, level, data, timestamp)
        self.queue.append(record)
        self.drainer.trigger()
        self.echo(record, stream)

    def echo(self, record: LogRecord, stream: Optional[TextIO] = None) -> None:
        """Write a record to the original output channel only."""
        out = stream if stream is not None else self.original_stream
        out.write(format_echo_line(record) + "\n")
        out.flush()

    async def start(self) -> None:
        """Bind the drainer to the running loop and flush early records."""
        await self.drainer.start()

    async def join(self) -> None:
        """Wait for the current drain to finish."""
        await self.drainer.join()

    async def stop(self) -> None:
        """Stop draining; pending records stay queued."""
        await self.drainer.stop()

    def status(self) -> ForwarderStatus:
        """Get a snapshot of the forwarding pipeline."""
        oldest = self.queue.peek_oldest()
        stats: Dict[str, int] = self.drainer.stats
        return ForwarderStatus(
            state=self.drainer.state,
            pending=len(self.queue),
            delivered=stats["delivered"],
            failed_attempts=stats["failed_attempts"],
            dropped=stats["dropped"],
            oldest_pending_at=oldest.timestamp if oldest else None,
        )

    def _report_failure(self, message: str, context: Dict[str, Any]) -> None:
        # Sink failures go to the echo path only; queueing them would feed the outage
        self.echo(LogRecord.create(message, LogLevel.ERROR, context))
