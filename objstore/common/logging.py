from __future__ import annotations

import json
import logging
from logging.config import dictConfig

from objstore.common.config import get_settings

STORAGE_LOGGER = "objstore.storage"


def setup_logging(level: str | None = None) -> None:
    """Route the ``objstore`` loggers through the JSON console handler.

    ``level`` defaults to the ``LOG_LEVEL`` setting.
    """
    if level is None:
        level = get_settings().LOG_LEVEL
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonFormatter,
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                },
            },
            "loggers": {
                "objstore": {
                    "handlers": ["console"],
                    "level": level,
                    "propagate": False,
                }
            },
        }
    )


def get_storage_logger() -> logging.Logger:
    return logging.getLogger(STORAGE_LOGGER)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "extra") and isinstance(record.extra, dict):
            payload.update(record.extra)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)
