"""Logging Setup.

``configure_logging()`` installs a single stdout handler on the root
logger: one JSON object per line in production, colored text locally.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from src.logging_config.config import DEFAULT_LOGGING_CONFIG, LogFormat, LoggingConfig
from src.logging_config.context import get_context_dict

# Attributes passed through ``extra=`` that make it into the output.
RECORD_EXTRA_FIELDS = (
    "duration_ms",
    "status_code",
    "method",
    "path",
    "account_id",
    "order_id",
    "symbol",
    "error_code",
)


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Request context plus whitelisted ``extra`` attributes of a record."""
    fields = get_context_dict()
    for key in RECORD_EXTRA_FIELDS:
        if hasattr(record, key):
            fields[key] = getattr(record, key)
    return fields


class StructuredFormatter(logging.Formatter):
    """JSON formatter with timestamp, level, logger, message and service."""

    def __init__(self, service_name: str = "folio", include_caller: bool = True):
        super().__init__()
        self.service_name = service_name
        self.include_caller = include_caller

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }
        if self.include_caller:
            entry.update(module=record.module, function=record.funcName, line=record.lineno)

        entry.update(record_fields(record))

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter with color-coded levels."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        clock = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        line = f"{color}{clock} {record.levelname:8s}{self.RESET} {record.name}: {record.getMessage()}"

        fields = record_fields(record)
        if fields:
            line += " [" + ", ".join(f"{k}={v}" for k, v in fields.items()) + "]"

        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(config: Optional[LoggingConfig] = None) -> LoggingConfig:
    """Configure the root logger for the Folio service.

    Call once at startup. ``FOLIO_LOG_LEVEL`` and ``FOLIO_LOG_FORMAT``
    override the given config.

    Returns:
        The effective configuration after env overrides.
    """
    config = (config or DEFAULT_LOGGING_CONFIG).with_env_overrides()

    if config.format == LogFormat.JSON:
        formatter: logging.Formatter = StructuredFormatter(
            service_name=config.service_name,
            include_caller=config.include_caller,
        )
    else:
        formatter = ConsoleFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(config.level.value)

    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    return config


def get_logger(name: str) -> logging.Logger:
    """Return a standard library logger (typically ``get_logger(__name__)``)."""
    return logging.getLogger(name)
