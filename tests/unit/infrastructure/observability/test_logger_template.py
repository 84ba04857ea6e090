"""Tests for logger_template helpers."""

import logging

import pytest

from moodify.infrastructure.observability.logger_template import (
    log_operation,
    log_slow_operation,
    log_worker_health,
)

logger = logging.getLogger("moodify.test.template")


class TestLogOperation:
    """Test the timed operation context manager."""

    @pytest.mark.asyncio
    async def test_started_and_completed(self, caplog: pytest.LogCaptureFixture) -> None:
        """Both ends are logged with context and duration."""
        caplog.set_level(logging.INFO, logger=logger.name)

        async with log_operation(logger, "recommend", service_id="spotify"):
            pass

        messages = [r.getMessage() for r in caplog.records]
        assert messages == ["recommend.started", "recommend.completed"]
        completed = caplog.records[-1]
        assert completed.service_id == "spotify"
        assert completed.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_failure_logged_and_reraised(self, caplog: pytest.LogCaptureFixture) -> None:
        """Errors are logged with their type and still propagate."""
        caplog.set_level(logging.INFO, logger=logger.name)

        with pytest.raises(ValueError):
            async with log_operation(logger, "graph_ingest"):
                raise ValueError("bad row")

        failed = caplog.records[-1]
        assert failed.getMessage() == "graph_ingest.failed"
        assert failed.levelno == logging.ERROR
        assert failed.error_type == "ValueError"
        assert failed.exc_info is not None

    @pytest.mark.asyncio
    async def test_debug_level_hidden_at_info(self, caplog: pytest.LogCaptureFixture) -> None:
        """Hot paths log at DEBUG and stay quiet by default."""
        caplog.set_level(logging.INFO, logger=logger.name)

        async with log_operation(logger, "tick", log_level=logging.DEBUG):
            pass

        assert caplog.records == []


class TestWorkerHealth:
    """Test log_worker_health()."""

    def test_fields(self, caplog: pytest.LogCaptureFixture) -> None:
        """Health logs have one consistent shape."""
        caplog.set_level(logging.INFO, logger=logger.name)

        log_worker_health(
            logger,
            "session_sync",
            cycles_completed=60,
            errors_total=2,
            uptime_seconds=61.7,
            extra_stats={"owner_count": 1},
        )

        record = caplog.records[0]
        assert record.getMessage() == "worker.health"
        assert record.worker == "session_sync"
        assert record.cycles_completed == 60
        assert record.errors_total == 2
        assert record.uptime_seconds == 61
        assert record.owner_count == 1


class TestSlowOperation:
    """Test log_slow_operation()."""

    def test_below_threshold_silent(self, caplog: pytest.LogCaptureFixture) -> None:
        """Fast operations produce nothing."""
        caplog.set_level(logging.INFO, logger=logger.name)
        log_slow_operation(logger, "rank", duration_ms=40, threshold_ms=100)
        assert caplog.records == []

    def test_above_threshold_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        """Slow operations warn with the threshold attached."""
        caplog.set_level(logging.INFO, logger=logger.name)
        log_slow_operation(logger, "rank", duration_ms=250, threshold_ms=100, seed_count=3)

        record = caplog.records[0]
        assert record.levelno == logging.WARNING
        assert record.operation == "rank"
        assert record.seed_count == 3
