"""Logging Configuration.

Log level, output format and request-tracing settings for the Folio
service, with ``FOLIO_LOG_*`` environment overrides.
"""

import os
from dataclasses import dataclass, field, replace
from enum import Enum


class LogLevel(str, Enum):
    """Log level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    CONSOLE = "console"


@dataclass
class LoggingConfig:
    """Structured logging configuration.

    ``context_params`` maps query parameters to log fields: a request
    for ``/api/portfolio/holdings?userId=4`` logs with ``user_id=4``.
    """

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    include_caller: bool = True
    slow_threshold_ms: float = 1000.0
    exclude_paths: list[str] = field(default_factory=lambda: ["/health"])
    service_name: str = "folio"
    context_params: dict[str, str] = field(default_factory=lambda: {
        "userId": "user_id",
        "accountId": "account_id",
    })
    quiet_loggers: tuple[str, ...] = (
        "urllib3",
        "yfinance",
        "peewee",
        "httpx",
        "multipart",
        "sqlalchemy.engine",
    )
    env_prefix: str = "FOLIO_"

    def with_env_overrides(self) -> "LoggingConfig":
        """Return a copy with ``<prefix>LOG_LEVEL`` / ``<prefix>LOG_FORMAT`` applied.

        Unknown values are ignored.
        """
        config = self
        level = os.environ.get(f"{self.env_prefix}LOG_LEVEL", "").upper()
        if level in LogLevel.__members__:
            config = replace(config, level=LogLevel(level))

        fmt = os.environ.get(f"{self.env_prefix}LOG_FORMAT", "").lower()
        if fmt in {f.value for f in LogFormat}:
            config = replace(config, format=LogFormat(fmt))
        return config


DEFAULT_LOGGING_CONFIG = LoggingConfig()
