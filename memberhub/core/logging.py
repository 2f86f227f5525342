"""Process-wide logging setup."""

from __future__ import annotations

import logging.config

from memberhub.core.config import Settings, get_settings

_configured = False


def configure_logging(settings: Settings | None = None) -> None:
    """Install the console handler once; later calls only adjust the level."""
    global _configured
    settings = settings or get_settings()
    level = "DEBUG" if settings.debug else settings.log_level.upper()

    if _configured:
        logging.getLogger("memberhub").setLevel(level)
        return

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "memberhub": {"handlers": ["console"], "level": level, "propagate": True},
                "sqlalchemy.engine": {"level": "WARNING"},
            },
        }
    )
    _configured = True


__all__ = ["configure_logging"]
