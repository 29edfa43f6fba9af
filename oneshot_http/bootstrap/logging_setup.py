"""Structured logging for the server: JSON lines to stdout or a rotating file."""

import json
import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Optional

from oneshot_http.domain.correlation_id import (
    NO_CORRELATION_ID,
    CorrelationLoggerAdapter,
)

LOGGER_NAME = "oneshot_http"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 5
REDACTED = "[REDACTED]"

SENSITIVE_PATTERNS = [
    re.compile(r"(?i)(authorization|token|password|secret|api[_-]?key)"),
    re.compile(r"\b[A-Fa-f0-9]{32,}\b"),
]

EXTRA_KEYS = (
    "client",
    "route",
    "method",
    "status_code",
    "limit_type",
    "header_count",
    "bytes_out",
    "content_length",
    "duration_ms",
    "error_type",
    "error",
    "host",
    "port",
    "log_destination",
    "log_level",
    "max_connections",
    "max_connections_per_ip",
    "shutdown_grace_seconds",
    "remaining_workers",
    "workers_finished",
    "draining",
    "signal",
)


def redact_sensitive(value: str) -> str:
    """Replace values that look like credentials with a marker."""
    if value and any(pattern.search(value) for pattern in SENSITIVE_PATTERNS):
        return REDACTED
    return value


class CorrelationIdFilter(logging.Filter):  # pylint: disable=too-few-public-methods
    """Give records logged outside an adapter a placeholder correlation ID."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = NO_CORRELATION_ID
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record with sorted keys.

    Only attributes named in ``extra_keys`` are copied from the record, and
    string values among them pass through :func:`redact_sensitive`.
    """

    def __init__(
        self,
        datefmt: Optional[str] = None,
        extra_keys: Iterable[str] = EXTRA_KEYS,
    ) -> None:
        super().__init__(datefmt=datefmt)
        self._extra_keys = ("event", *extra_keys)

    def _extras(self, record: logging.LogRecord) -> dict[str, Any]:
        extras = {}
        for key in self._extra_keys:
            if not hasattr(record, key):
                continue
            value = getattr(record, key)
            extras[key] = redact_sensitive(value) if isinstance(value, str) else value
        return extras

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "component": getattr(record, "component", "unknown"),
            "message": record.getMessage(),
            **self._extras(record),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, sort_keys=True, default=str)


def _resolve_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO


def _open_destination(destination: Optional[str]) -> logging.Handler:
    """``stdout`` (or nothing) means the console; anything else is a file path."""
    if not destination or destination.lower() == "stdout":
        return logging.StreamHandler(sys.stdout)
    target_path = Path(destination)
    target_path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        target_path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT
    )


def _build_formatter(use_json: bool) -> logging.Formatter:
    if use_json:
        return JsonFormatter(datefmt=DATE_FORMAT)
    return logging.Formatter(LOG_FORMAT, DATE_FORMAT)


def configure_logging(
    level: str = "INFO", destination: Optional[str] = None, use_json: bool = True
) -> CorrelationLoggerAdapter:
    """Point the ``oneshot_http`` logger at one handler.

    Handlers from a previous call are closed first, so calling this twice
    never duplicates output.
    """
    numeric_level = _resolve_level(level)
    handler = _open_destination(destination)
    handler.setLevel(numeric_level)
    handler.setFormatter(_build_formatter(use_json))
    handler.addFilter(CorrelationIdFilter())

    logger = logging.getLogger(LOGGER_NAME)
    for previous in list(logger.handlers):
        logger.removeHandler(previous)
        previous.close()
    logger.addHandler(handler)
    logger.setLevel(numeric_level)
    logger.propagate = False

    adapter = CorrelationLoggerAdapter(logger, {})
    adapter.info(
        "Logging configured",
        extra={
            "event": "logging_configured",
            "log_level": logging.getLevelName(numeric_level),
            "log_destination": destination or "stdout",
        },
    )
    return adapter
