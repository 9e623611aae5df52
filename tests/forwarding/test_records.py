"""
Tests for log records and levels.
"""

import dataclasses
import logging
from datetime import datetime, timezone

import pytest

from log_forwarder.forwarding.records import LogLevel, LogRecord


class TestLogLevel:
    """Test cases for LogLevel."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("trace", LogLevel.TRACE),
            ("debug", LogLevel.TRACE),
            ("INFO", LogLevel.INFO),
            ("information", LogLevel.INFO),
            ("log", LogLevel.LOG),
            ("warn", LogLevel.WARN),
            ("warning", LogLevel.WARN),
            ("error", LogLevel.ERROR),
            ("critical", LogLevel.ERROR),
        ],
    )
    def test_parse_names_and_aliases(self, value, expected):
        """Test level names and aliases resolve to the closed set."""
        assert LogLevel(value) is expected

    def test_unknown_level_rejected(self):
        """Test unknown names raise ValueError."""
        with pytest.raises(ValueError):
            LogLevel("verbose")

    def test_labels_share_one_width(self):
        """Test echo labels are right-padded to the longest level name."""
        labels = [level.label for level in LogLevel]
        assert {len(label) for label in labels} == {5}
        assert LogLevel.WARN.label == "WARN "
        assert LogLevel.LOG.label == "LOG  "

    @pytest.mark.parametrize(
        "levelno,expected",
        [
            (5, LogLevel.TRACE),
            (logging.DEBUG, LogLevel.TRACE),
            (logging.INFO, LogLevel.INFO),
            (25, LogLevel.LOG),
            (logging.WARNING, LogLevel.WARN),
            (logging.ERROR, LogLevel.ERROR),
            (logging.CRITICAL, LogLevel.ERROR),
        ],
    )
    def test_from_stdlib(self, levelno, expected):
        """Test stdlib level numbers map to the closest level."""
        assert LogLevel.from_stdlib(levelno) is expected


class TestLogRecord:
    """Test cases for LogRecord."""

    def test_record_is_immutable(self):
        """Test records cannot be changed after construction."""
        record = LogRecord.create("price list refreshed")

        with pytest.raises(dataclasses.FrozenInstanceError):
            record.message = "changed"

    def test_timestamp_captured_at_construction(self):
        """Test the timestamp is taken when the record is built."""
        before = datetime.now(timezone.utc)
        record = LogRecord.create("hello", LogLevel.LOG)
        after = datetime.now(timezone.utc)

        assert before <= record.timestamp <= after
        assert record.timestamp.tzinfo is not None

    def test_create_coerces_message_and_level(self):
        """Test non-string messages and level names are coerced."""
        record = LogRecord.create(42, "warning", {"symbol": "BTC"})

        assert record.message == "42"
        assert record.level is LogLevel.WARN
        assert record.data == {"symbol": "BTC"}

    def test_data_is_optional(self):
        """Test records without data."""
        assert LogRecord.create("no payload").data is None

    def test_to_payload(self):
        """Test the wire shape sent to the sink."""
        ts = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        record = LogRecord.create("converted", LogLevel.INFO, {"from": "BTC"}, ts)

        assert record.to_payload() == {
            "message": "converted",
            "level": "info",
            "data": {"from": "BTC"},
            "timestamp": "2024-01-02T03:04:05+00:00",
        }
