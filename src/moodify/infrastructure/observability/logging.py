"""Structured logging configuration with JSON formatting and correlation IDs."""

import contextvars
import logging
import sys
import uuid
from typing import Any

from pythonjsonlogger.json import JsonFormatter

# Hey future me, one correlation id per logical flow (a sync session, one
# recommend() call). contextvars gives every asyncio task its own copy, so the
# poller task keeps ITS id while a recommendation runs under another.
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)


def get_correlation_id() -> str:
    """Current correlation ID, "" outside any flow."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set correlation ID in context.

    Call once at the start of a flow. SessionSyncStore does it when its task starts.

    Args:
        correlation_id: Correlation ID to set. If None, generates a new UUID

    Returns:
        The correlation ID that was set
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    correlation_id_var.set(correlation_id)
    return correlation_id


class CorrelationIdFilter(logging.Filter):
    """Attach the context's correlation ID to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


class ChainFormatter(logging.Formatter):
    """Human-readable formatter that prints exception chains one line per link.

    Backend failures arrive wrapped (socket error -> MediaServiceError). Instead of
    the full traceback pair we print the chain root first, each link with the
    place it was raised:

    12:00:01 │ WARNING │ moodify.application.workers.session_sync_store:271 │ Sync tick failed
    ╰─► ConnectionError: socket closed  (client.py:40 in get_playback_state)
    ╰─► MediaServiceError: [spotify] Failed to read playback state  (base.py:186 in get_playback_state)
    """

    def formatException(self, ei: Any) -> str:
        exc_value = ei[1]
        if exc_value is None:
            return ""

        chain: list[BaseException] = []
        current: BaseException | None = exc_value
        while current is not None and current not in chain:
            chain.append(current)
            current = current.__cause__ or current.__context__

        lines = []
        for exc in reversed(chain):
            line = f"╰─► {type(exc).__name__}: {exc}"
            tb = exc.__traceback__
            if tb is not None:
                while tb.tb_next is not None:
                    tb = tb.tb_next
                code = tb.tb_frame.f_code
                filename = code.co_filename.rsplit("/", 1)[-1]
                line += f"  ({filename}:{tb.tb_lineno} in {code.co_name})"
            lines.append(line)
        return "\n".join(lines)


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter with level/logger/location fields and the correlation ID."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno

        # Record attributes are merged in by the library; an empty id is just noise
        if not log_record.get("correlation_id"):
            log_record.pop("correlation_id", None)


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    app_name: str = "moodify",
) -> None:
    """Configure root logging. Replaces existing root handlers; lifespan() calls it once.

    Args:
        log_level: Logging level name; unknown names fall back to INFO
        json_format: JSON lines (shipped builds) instead of the readable format
        app_name: Application name included in the startup log
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())

    if json_format:
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ChainFormatter(
            fmt="%(asctime)s │ %(levelname)-7s │ %(name)s:%(lineno)d │ %(message)s",
            datefmt="%H:%M:%S",
        )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"app_name": app_name, "log_level": log_level, "json_format": json_format},
    )
