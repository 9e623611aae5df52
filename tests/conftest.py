"""
Shared fixtures for log forwarder tests.
"""

import asyncio
import io
from typing import List, Optional

import pytest

from log_forwarder import bootstrap
from log_forwarder.core.exceptions import SinkUnavailableError
from log_forwarder.forwarding.context import LoggingContext
from log_forwarder.forwarding.interception import get_active_interceptor
from log_forwarder.forwarding.records import LogRecord


class RecordingSink:
    """Sink double that records every attempt and fails on demand."""

    def __init__(self, failures: int = 0, gate: Optional[asyncio.Event] = None):
        self.failures = failures
        self.gate = gate
        self.calls: List[LogRecord] = []
        self.call_times: List[float] = []
        self.delivered: List[LogRecord] = []

    async def persist(self, record: LogRecord) -> None:
        self.calls.append(record)
        self.call_times.append(asyncio.get_running_loop().time())
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.failures > 0:
            self.failures -= 1
            raise SinkUnavailableError("collector unreachable")
        self.delivered.append(record)

    @property
    def delivered_messages(self) -> List[str]:
        return [r.message for r in self.delivered]

    @property
    def called_messages(self) -> List[str]:
        return [r.message for r in self.calls]


@pytest.fixture
def echo_stream():
    """In-memory stand-in for the original output channel."""
    return io.StringIO()


@pytest.fixture
def sink():
    """Sink that always succeeds."""
    return RecordingSink()


@pytest.fixture
def context(sink, echo_stream):
    """Logging context with short delays for fast tests."""
    return LoggingContext(
        sink, stream=echo_stream, retry_delay=0.05, reschedule_delay=0.0
    )


@pytest.fixture(autouse=True)
def reset_interception():
    """Make sure no test leaks an installed interceptor."""
    yield
    interceptor = get_active_interceptor()
    if interceptor is not None:
        interceptor.uninstall()
    bootstrap._context = None
    bootstrap._interceptor = None


def echo_lines(stream: io.StringIO) -> List[str]:
    """Echoed lines, without the trailing newline."""
    return stream.getvalue().splitlines()
