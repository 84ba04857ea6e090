"""Shared logger utilities and templates.

Hey future me - this makes logging consistent across the media core!
Use these helpers instead of ad-hoc timing/health logs.

USAGE:
    from moodify.infrastructure.observability.logger_template import (
        log_operation,
        log_slow_operation,
        log_worker_health,
    )

    async with log_operation(logger, "recommend", service_id="spotify"):
        items = await engine.recommend(context)

    log_worker_health(logger, "session_sync", cycles_completed=10, errors_total=2, uptime_seconds=60)
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any


# Yo, this context manager logs start/end with automatic duration tracking. The **context
# kwargs land as extra fields on both logs. On exception it logs the failure WITH traceback
# and re-raises, so the caller still decides what the failure means.
@asynccontextmanager
async def log_operation(
    logger: logging.Logger,
    operation: str,
    log_level: int = logging.INFO,
    **context: Any,
) -> AsyncIterator[None]:
    """Context manager for logging operation start/end with automatic timing.

    Logs:
    - {operation}.started with context fields
    - {operation}.completed with context + duration_ms
    - {operation}.failed with context + duration_ms + error details (if exception)

    Args:
        logger: Logger instance (logging.getLogger(__name__))
        operation: Operation name (e.g., "recommend", "graph_ingest")
        log_level: Level for started/completed logs (use DEBUG for hot paths)
        **context: Additional fields to include in logs

    Example:
        >>> async with log_operation(logger, "commit_session", vibe="focus"):
        ...     await ingestion.commit_session("focus", songs)
    """
    start = time.monotonic()
    logger.log(log_level, f"{operation}.started", extra=context)

    try:
        yield
    except Exception as e:
        duration_ms = int((time.monotonic() - start) * 1000)
        logger.error(
            f"{operation}.failed",
            extra={
                **context,
                "duration_ms": duration_ms,
                "error": str(e),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        raise

    duration_ms = int((time.monotonic() - start) * 1000)
    logger.log(
        log_level,
        f"{operation}.completed",
        extra={**context, "duration_ms": duration_ms},
    )


# Listen future me, call this every N cycles from long-running workers so health shows
# up in the logs in ONE consistent shape. High errors_total with a flat cycles_completed
# means the backend is down and we're just swallowing tick failures.
def log_worker_health(
    logger: logging.Logger,
    worker_name: str,
    cycles_completed: int,
    errors_total: int,
    uptime_seconds: float,
    extra_stats: dict[str, Any] | None = None,
) -> None:
    """Log worker health status in consistent format.

    Args:
        logger: Logger instance
        worker_name: Worker identifier (e.g., "session_sync")
        cycles_completed: Total cycles completed since start
        errors_total: Total errors encountered since start
        uptime_seconds: Seconds since worker started
        extra_stats: Optional dict of additional stats to include in log
    """
    log_data: dict[str, Any] = {
        "worker": worker_name,
        "cycles_completed": cycles_completed,
        "errors_total": errors_total,
        "uptime_seconds": int(uptime_seconds),
    }
    if extra_stats:
        log_data.update(extra_stats)

    logger.info("worker.health", extra=log_data)


def log_slow_operation(
    logger: logging.Logger,
    operation: str,
    duration_ms: int,
    threshold_ms: int = 100,
    **context: Any,
) -> None:
    """Log warning if operation exceeded threshold.

    Args:
        logger: Logger instance
        operation: Operation name
        duration_ms: Actual operation duration
        threshold_ms: Threshold for "slow" (default: 100ms)
        **context: Additional fields (e.g., seed_count)
    """
    if duration_ms > threshold_ms:
        logger.warning(
            "operation.slow",
            extra={
                **context,
                "operation": operation,
                "duration_ms": duration_ms,
                "threshold_ms": threshold_ms,
            },
        )
