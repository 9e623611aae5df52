"""
Tests for remote log sinks.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal

import httpx
import pytest

from log_forwarder.core.exceptions import (
    LogSinkError,
    SinkRejectedError,
    SinkUnavailableError,
)
from log_forwarder.forwarding.records import LogLevel, LogRecord
from log_forwarder.forwarding.sink import DiscardingLogSink, HttpLogSink, LogSink

SINK_URL = "https://logs.example.test/ingest"


def make_sink(handler) -> HttpLogSink:
    """Create an HTTP sink whose client talks to a mock transport."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpLogSink(SINK_URL, client=client)


@pytest.fixture
def sample_record():
    """Sample record for testing."""
    return LogRecord.create(
        "converted 2 BTC",
        LogLevel.INFO,
        {"from": "BTC", "to": "BUSD"},
        datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


class TestHttpLogSink:
    """Test cases for HttpLogSink."""

    def test_satisfies_protocol(self):
        """Test both sinks implement LogSink."""
        assert isinstance(HttpLogSink(SINK_URL), LogSink)
        assert isinstance(DiscardingLogSink(), LogSink)

    @pytest.mark.asyncio
    async def test_persist_posts_payload(self, sample_record):
        """Test one JSON POST per record carrying message, level, data and timestamp."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(202, text="ignored")

        sink = make_sink(handler)
        await sink.persist(sample_record)
        await sink.session.aclose()

        assert len(requests) == 1
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == SINK_URL
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {
            "message": "converted 2 BTC",
            "level": "info",
            "data": {"from": "BTC", "to": "BUSD"},
            "timestamp": "2024-05-01T12:00:00+00:00",
        }

    @pytest.mark.asyncio
    async def test_opaque_data_is_stringified(self):
        """Test payloads that JSON cannot encode natively still go out."""
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200)

        sink = make_sink(handler)
        await sink.persist(LogRecord.create("price", data={"price": Decimal("1.5")}))

        assert bodies[0]["data"] == {"price": "1.5"}

    @pytest.mark.asyncio
    async def test_non_success_status_raises_rejected(self, sample_record):
        """Test 4xx/5xx responses become SinkRejectedError."""
        sink = make_sink(lambda request: httpx.Response(503))

        with pytest.raises(SinkRejectedError) as exc_info:
            await sink.persist(sample_record)

        assert exc_info.value.status_code == 503
        assert "503" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_auth_rejection_raises_rejected(self, sample_record):
        """Test an authentication rejection is just another sink failure."""
        sink = make_sink(lambda request: httpx.Response(401))

        with pytest.raises(LogSinkError):
            await sink.persist(sample_record)

    @pytest.mark.asyncio
    async def test_network_error_raises_unavailable(self, sample_record):
        """Test transport errors become SinkUnavailableError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        sink = make_sink(handler)

        with pytest.raises(SinkUnavailableError) as exc_info:
            await sink.persist(sample_record)

        assert exc_info.value.status_code is None
        assert "ConnectError" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_raises_unavailable(self, sample_record):
        """Test timeouts become SinkUnavailableError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        sink = make_sink(handler)

        with pytest.raises(SinkUnavailableError, match="Timed out"):
            await sink.persist(sample_record)

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        """Test close() leaves a caller-owned client alone."""
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        sink = HttpLogSink(SINK_URL, client=client)

        await sink.close()

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_context_manager_owns_session(self):
        """Test the sink opens and closes its own session."""
        async with HttpLogSink(SINK_URL, timeout=2.0) as sink:
            assert sink.session is not None
            assert not sink.session.is_closed
            session = sink.session

        assert session.is_closed


class TestDiscardingLogSink:
    """Test cases for DiscardingLogSink."""

    @pytest.mark.asyncio
    async def test_always_succeeds(self, sample_record):
        """Test records are accepted and nothing is raised."""
        assert await DiscardingLogSink().persist(sample_record) is None
