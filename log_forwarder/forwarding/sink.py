"""Remote log sinks."""

import asyncio
import json
from typing import Optional, Protocol, runtime_checkable

import httpx
import structlog

from log_forwarder.core.exceptions import SinkRejectedError, SinkUnavailableError
from .records import LogRecord

logger = structlog.get_logger(__name__)


@runtime_checkable
class LogSink(Protocol):
    """Remote persistence for a single record.

    ``persist`` returns normally on success and raises on failure. It may
    take an unbounded time; retrying is the drainer's job, never the sink's.
    """

    async def persist(self, record: LogRecord) -> None: ...


class DiscardingLogSink:
    """Sink used when no remote endpoint is configured; accepts everything."""

    async def persist(self, record: LogRecord) -> None:
        return None


class HttpLogSink:
    """POSTs each record as JSON to a remote log collector."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the HTTP sink.

        Args:
            url: Collector endpoint receiving one record per request
            timeout: Request timeout in seconds
            client: Pre-built httpx client (tests inject one with a mock transport)
        """
        self.url = url
        self.timeout = timeout
        self.session: Optional[httpx.AsyncClient] = client
        self._owns_session = client is None
        self._session_lock = asyncio.Lock()

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start_session()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def start_session(self) -> None:
        """Start the httpx session."""
        if self.session is None or self.session.is_closed:
            async with self._session_lock:
                if self.session is None or self.session.is_closed:
                    headers = {
                        "Content-Type": "application/json",
                        "User-Agent": "log-forwarder/1.0",
                    }
                    self.session = httpx.AsyncClient(
                        headers=headers, timeout=httpx.Timeout(self.timeout)
                    )
                    self._owns_session = True
                    logger.debug("Log sink session started", url=self.url)

    async def close(self) -> None:
        """Close the httpx session if this sink created it."""
        if self.session and not self.session.is_closed and self._owns_session:
            await self.session.aclose()
            logger.debug("Log sink session closed", url=self.url)

    async def persist(self, record: LogRecord) -> None:
        """Send one record; raise a LogSinkError subclass on any failure."""
        await self.start_session()
        body = json.dumps(record.to_payload(), default=str)

        try:
            response = await self.session.post(
                self.url,
                content=body,
                headers={"Content-Type": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise SinkUnavailableError(f"Timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise SinkUnavailableError(f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise SinkRejectedError(
                f"Collector rejected record ({response.reason_phrase})",
                status_code=response.status_code,
            )
