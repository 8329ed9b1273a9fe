"""Centralized logging configuration."""
from __future__ import annotations

import logging
from logging.config import dictConfig

from app.core.context import get_request_id

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"

# Chatty third-party loggers that only add noise at INFO.
QUIET_LOGGERS = ("httpx", "openai", "opik")


class RequestIdFilter(logging.Filter):
    """Add request_id attribute to log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - minimal logic
        record.request_id = get_request_id() or "-"
        return True


def configure_logging(*, log_level: str = "INFO") -> None:
    """Configure application logging once at startup."""
    if getattr(configure_logging, "_configured", False):
        return

    level = log_level.upper()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "filters": {"request_id": {"()": "app.core.logging.RequestIdFilter"}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": level,
                    "filters": ["request_id"],
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
            "root": {"handlers": ["console"], "level": level},
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s", level)
    setattr(configure_logging, "_configured", True)
