"""Tests for structured logging."""

import asyncio
import json
import logging
import sys

from moodify.infrastructure.observability.logging import (
    ChainFormatter,
    CorrelationIdFilter,
    CustomJsonFormatter,
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)


def _record(msg: str = "hello", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="moodify.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestCorrelationId:
    """Test correlation ID functionality."""

    def test_set_and_get_correlation_id(self):
        """Test setting and getting correlation ID."""
        test_id = "sync-123-abc"
        result = set_correlation_id(test_id)
        assert result == test_id
        assert get_correlation_id() == test_id

    def test_set_correlation_id_generates_uuid_when_none(self):
        """Test that setting None generates a UUID."""
        result = set_correlation_id(None)
        assert len(result) == 36
        assert get_correlation_id() == result

    def test_correlation_id_is_per_task(self):
        """A task's correlation ID doesn't leak into the caller."""
        set_correlation_id("outer")

        async def inner() -> str:
            set_correlation_id("inner")
            return get_correlation_id()

        async def main() -> tuple[str, str]:
            result = await asyncio.create_task(inner())
            return result, get_correlation_id()

        assert asyncio.run(main()) == ("inner", "outer")

    def test_filter_attaches_correlation_id(self):
        """CorrelationIdFilter copies the context value onto the record."""
        set_correlation_id("req-7")
        record = _record()
        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "req-7"


class TestLoggingConfiguration:
    """Test logging configuration."""

    def test_configure_logging_debug_level(self):
        """Test configuring logging with DEBUG level."""
        configure_logging(log_level="DEBUG", json_format=False, app_name="test-app")
        logger = logging.getLogger("moodify.test")
        assert logger.getEffectiveLevel() <= logging.DEBUG

    def test_configure_logging_unknown_level_falls_back_to_info(self):
        """Typos in MOODIFY_LOG_LEVEL don't crash startup."""
        configure_logging(log_level="LOUD", json_format=False, app_name="test-app")
        assert logging.getLogger().level == logging.INFO

    def test_configure_logging_replaces_handlers(self):
        """Calling twice leaves exactly one handler."""
        configure_logging(log_level="INFO", json_format=True, app_name="test-app")
        configure_logging(log_level="INFO", json_format=False, app_name="test-app")
        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, ChainFormatter)

    def test_configure_logging_json_format(self):
        """Test configuring logging with JSON format."""
        configure_logging(log_level="INFO", json_format=True, app_name="test-app")
        root_logger = logging.getLogger()
        assert isinstance(root_logger.handlers[0].formatter, CustomJsonFormatter)


class TestFormatters:
    """Test the two output formats."""

    def test_json_formatter_fields(self):
        """JSON lines carry level, logger and correlation ID."""
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
        record = _record("tick failed")
        record.correlation_id = "poll-1"

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "tick failed"
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "moodify.test"
        assert payload["line"] == 42
        assert payload["correlation_id"] == "poll-1"

    def test_json_formatter_omits_empty_correlation_id(self):
        """Startup logs have no correlation ID field."""
        formatter = CustomJsonFormatter("%(message)s")
        record = _record()
        record.correlation_id = ""
        assert "correlation_id" not in json.loads(formatter.format(record))

    def test_chain_formatter_root_cause_first(self):
        """Wrapped exceptions print as one line each, root cause first, with location."""
        try:
            try:
                raise ConnectionError("socket closed")
            except ConnectionError as e:
                raise RuntimeError("playback state unavailable") from e
        except RuntimeError:
            exc_info = sys.exc_info()

        lines = ChainFormatter().formatException(exc_info).splitlines()

        assert len(lines) == 2
        assert lines[0].startswith("╰─► ConnectionError: socket closed  (test_logging.py:")
        assert lines[1].startswith("╰─► RuntimeError: playback state unavailable  (test_logging.py:")
        assert lines[1].endswith("in test_chain_formatter_root_cause_first)")

    def test_chain_formatter_without_exception(self):
        """No exception value, no output."""
        assert ChainFormatter().formatException((None, None, None)) == ""
