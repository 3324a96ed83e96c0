"""Logging setup shared by the HTTP app and the command line."""

from __future__ import annotations

import logging
import logging.config
import sys

from creditledger.core.config import LoggingSettings


def configure_logging(settings: LoggingSettings | None = None, *, debug: bool = False) -> None:
    settings = settings or LoggingSettings()
    level = "DEBUG" if debug else settings.level.upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": settings.format},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": sys.stdout,
                },
            },
            "loggers": {
                "creditledger": {"handlers": ["console"], "level": level, "propagate": False},
                # engine echo is controlled through DatabaseSettings.echo
                "sqlalchemy.engine": {"level": "WARNING"},
            },
        }
    )


__all__ = ["configure_logging"]
