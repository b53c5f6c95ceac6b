"""Module: logging_config."""

import logging.config

from dosetrack.core.config import settings


def configure_logging(level: str | None = None) -> None:
    """Install the console handler used by the API process and scripts."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "dosetrack": {
                    "handlers": ["console"],
                    "level": (level or settings.log_level).upper(),
                    "propagate": False,
                },
            },
        }
    )


def mask_secret(value: str | None, visible: int = 3) -> str:
    # Reminder credentials grant access on their own; only a prefix is logged.
    if not value:
        return "<none>"
    return value[:visible] + "***"
