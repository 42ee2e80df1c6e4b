"""Process-wide logging setup for the API and CLI entrypoints."""

import logging

from app.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once; level defaults to settings.LOG_LEVEL."""
    logging.basicConfig(
        level=level or get_settings().LOG_LEVEL,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
