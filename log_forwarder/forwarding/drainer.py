"""
Single-flight drainer moving queued records to the remote sink.

The drainer owns the queue while it is DRAINING. The state flips back to
IDLE only when the drain task finds the queue empty, with no suspension
point between that check and the flip, so a trigger arriving during the
reschedule or backoff sleep never starts a second drain task.
"""

import asyncio
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, Optional

import structlog

from .queue import LogQueue
from .records import LogRecord
from .sink import LogSink

logger = structlog.get_logger(__name__)

FailureReporter = Callable[[str, Dict[str, Any]], None]


class DrainerState(str, Enum):
    """Drainer states."""

    IDLE = "idle"
    DRAINING = "draining"


class Drainer:
    """Drains a LogQueue into a LogSink, one record at a time."""

    def __init__(
        self,
        queue: LogQueue,
        sink: LogSink,
        *,
        retry_delay: float = 30.0,
        reschedule_delay: float = 0.0,
        retry_limit: Optional[int] = None,
        reporter: Optional[FailureReporter] = None,
    ):
        """
        Initialize the drainer.

        Args:
            queue: Queue to drain
            sink: Destination for records
            retry_delay: Fixed backoff in seconds after a failed persist
            reschedule_delay: Delay in seconds between successful steps
            retry_limit: Consecutive failures before a record is dropped (None = never)
            reporter: Receives failure reports; defaults to this module's logger
        """
        if retry_delay < 0 or reschedule_delay < 0:
            raise ValueError("Drainer delays must be non-negative")
        if retry_limit is not None and retry_limit < 1:
            raise ValueError("retry_limit must be at least 1")

        self.queue = queue
        self.sink = sink
        self.retry_delay = retry_delay
        self.reschedule_delay = reschedule_delay
        self.retry_limit = retry_limit
        self._report = reporter or self._log_failure

        self.state = DrainerState.IDLE
        self.stats = defaultdict(int)
        self._consecutive_failures = 0
        self._stopped = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        """True while a drain task owns the queue."""
        return self.state is DrainerState.DRAINING

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Remember the loop that drain tasks run on."""
        self._loop = loop

    def trigger(self) -> bool:
        """Ask for a drain; returns True only if this call started one."""
        if self._stopped or self.state is DrainerState.DRAINING:
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        bound = self._loop
        if loop is not None and (bound is None or bound is loop or not bound.is_running()):
            self._loop = loop
            self.state = DrainerState.DRAINING
            self._task = loop.create_task(self._drain())
            return True

        # Producer outside the drain loop: hand the trigger over to it.
        # With no loop at all the record waits for start().
        if bound is not None and bound.is_running():
            bound.call_soon_threadsafe(self.trigger)
        return False

    async def start(self) -> None:
        """Bind to the running loop and drain anything queued so far."""
        self._stopped = False
        self.bind(asyncio.get_running_loop())
        self.trigger()

    async def join(self) -> None:
        """Wait until the current drain task has emptied the queue."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    async def stop(self) -> None:
        """Cancel the current drain task; an in-flight record is requeued.

        Triggers are ignored afterwards until :meth:`start` is called again.
        """
        self._stopped = True
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        # A task cancelled before its first step never runs its finally block
        self.state = DrainerState.IDLE
        self._task = None
        logger.debug("Drainer stopped", pending=len(self.queue))

    async def _drain(self) -> None:
        try:
            while True:
                record = self.queue.remove_oldest()
                if record is None:
                    self.state = DrainerState.IDLE
                    return

                requeued = not await self._attempt(record)
                await asyncio.sleep(self.retry_delay if requeued else self.reschedule_delay)
        finally:
            self.state = DrainerState.IDLE
            self._task = None

    async def _attempt(self, record: LogRecord) -> bool:
        """Persist one record; False means it went back to the head for a retry."""
        try:
            await self.sink.persist(record)
        except asyncio.CancelledError:
            self.queue.requeue_at_head(record)
            raise
        except Exception as e:
            return not self._on_failure(record, e)

        self._consecutive_failures = 0
        self.stats["delivered"] += 1
        return True

    def _on_failure(self, record: LogRecord, error: Exception) -> bool:
        """Requeue or drop a failed record; returns True if it was requeued."""
        self._consecutive_failures += 1
        self.stats["failed_attempts"] += 1
        context = {
            "error": str(error),
            "error_type": type(error).__name__,
            "attempt": self._consecutive_failures,
            "record_level": record.level.value,
            "record_timestamp": record.timestamp.isoformat(),
        }

        if self.retry_limit is not None and self._consecutive_failures >= self.retry_limit:
            self._consecutive_failures = 0
            self.stats["dropped"] += 1
            self._report(
                f"Dropping log record after {context['attempt']} failed attempts: {error}",
                context,
            )
            return False

        self.queue.requeue_at_head(record)
        self._report(
            f"Failed to forward log record, retrying in {self.retry_delay:g}s: {error}",
            context,
        )
        return True

    @staticmethod
    def _log_failure(message: str, context: Dict[str, Any]) -> None:
        logger.error(message, **context)
