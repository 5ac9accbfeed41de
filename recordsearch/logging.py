"""Logging configuration helpers."""
from __future__ import annotations

import json
import logging
from logging.config import dictConfig
from typing import Any, Dict

from .config import Settings, load_settings

LOG_FILE_NAME = "recordsearch.log"

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class _JsonFormatter(logging.Formatter):
    """Render records as one JSON object per line, including ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = record.stack_info
        return json.dumps(payload, default=str)


def build_logging_config(settings: Settings | None = None) -> Dict[str, Any]:
    """Return a dictionary config for logging."""

    settings = settings or load_settings()
    log_settings = settings.logging
    level = log_settings.level.upper()
    package_handlers = ["default"]
    handlers: Dict[str, Any] = {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": "json" if log_settings.json_format else "console",
            "level": level,
        },
    }
    if log_settings.directory is not None:
        handlers["app_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json",
            "level": "DEBUG",
            "filename": str(log_settings.directory / LOG_FILE_NAME),
            "maxBytes": log_settings.max_bytes,
            "backupCount": log_settings.backup_count,
            "encoding": "utf-8",
        }
        package_handlers.append("app_file")
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": f"{__name__}._JsonFormatter"},
            "console": {"format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s"},
        },
        "handlers": handlers,
        "loggers": {
            "": {"handlers": ["default"], "level": "WARNING"},
            "recordsearch": {"handlers": package_handlers, "level": level, "propagate": False},
            "httpx": {"handlers": ["default"], "level": "WARNING", "propagate": False},
        },
    }


def setup_logging(settings: Settings | None = None) -> None:
    """Configure logging for the package, creating the log directory if needed."""

    settings = settings or load_settings()
    if settings.logging.directory is not None:
        settings.logging.directory.mkdir(parents=True, exist_ok=True)
    dictConfig(build_logging_config(settings))


__all__ = ["LOG_FILE_NAME", "setup_logging", "build_logging_config"]
