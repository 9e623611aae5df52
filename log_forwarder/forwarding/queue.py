"""
In-memory queue of log records awaiting delivery.

The queue is unbounded: there is no capacity limit and no eviction, so a
sink that stays unreachable makes it grow for as long as the outage lasts.
"""

from collections import deque
from typing import Deque, Iterator, Optional

from .records import LogRecord


class LogQueue:
    """FIFO of pending records with head reinsertion for retries."""

    def __init__(self) -> None:
        self._records: Deque[LogRecord] = deque()

    def append(self, record: LogRecord) -> None:
        """Add a record at the tail."""
        self._records.append(record)

    def peek_oldest(self) -> Optional[LogRecord]:
        """Return the oldest record without removing it."""
        try:
            return self._records[0]
        except IndexError:
            return None

    def remove_oldest(self) -> Optional[LogRecord]:
        """Remove and return the oldest record, or None when empty."""
        try:
            return self._records.popleft()
        except IndexError:
            return None

    def requeue_at_head(self, record: LogRecord) -> None:
        """Put a record back so it is the next one drained."""
        self._records.appendleft(record)

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def __iter__(self) -> Iterator[LogRecord]:
        return iter(list(self._records))
