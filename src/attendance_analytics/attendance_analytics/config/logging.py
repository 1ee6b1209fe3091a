"""Logging configuration.

Console output only; the deployment collects stdout. ``LOG_FORMAT=json``
switches to structured records for log shippers.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Dict

LOGGER_NAME = "attendance_analytics"


def build_logging_config(*, level: str = "INFO", fmt: str = "standard") -> Dict[str, Any]:
    formatter = "json" if fmt == "json" else "standard"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            },
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
                "rename_fields": {"levelname": "level", "name": "logger", "asctime": "timestamp"},
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": formatter,
            },
        },
        "loggers": {
            LOGGER_NAME: {
                "handlers": ["console"],
                "level": level,
                "propagate": False,
            },
            "werkzeug": {
                "handlers": ["console"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    }


def configure_logging(*, level: str = "INFO", fmt: str = "standard") -> None:
    logging.config.dictConfig(build_logging_config(level=level.upper(), fmt=fmt))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
