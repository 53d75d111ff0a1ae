"""Logging configuration helpers."""

from __future__ import annotations

import logging
import logging.config
from typing import Any

from .config import LoggingSettings

PACKAGE_LOGGER = "provisio"
RESOLUTION_LOGGER = f"{PACKAGE_LOGGER}.resolution"


def _formatter(structured: bool) -> dict[str, Any]:
    """Return the dictConfig formatter; structured mode emits JSON objects."""
    if not structured:
        return {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"}
    return {
        "format": (
            '{{"time": "{asctime}", "level": "{levelname}", '
            '"logger": "{name}", "message": "{message}"}}'
        ),
        "style": "{",
    }


def _loggers(settings: LoggingSettings) -> dict[str, Any]:
    loggers: dict[str, Any] = {
        PACKAGE_LOGGER: {"level": settings.level, "propagate": True},
    }
    if settings.trace_resolution:
        # registry, cache and resolver chatter is all DEBUG
        loggers[RESOLUTION_LOGGER] = {"level": "DEBUG", "propagate": True}
    return loggers


def configure_logging(settings: LoggingSettings) -> None:
    """Configure root and container logging according to provided settings."""
    handler_level = "DEBUG" if settings.trace_resolution else settings.level

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": _formatter(settings.structured)},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": handler_level,
                },
            },
            "loggers": _loggers(settings),
            "root": {"handlers": ["console"], "level": settings.level},
        }
    )
    logging.getLogger(PACKAGE_LOGGER).debug(
        "Logging configured (level=%s, structured=%s, trace=%s)",
        settings.level,
        settings.structured,
        settings.trace_resolution,
    )


__all__ = ["PACKAGE_LOGGER", "RESOLUTION_LOGGER", "configure_logging"]
