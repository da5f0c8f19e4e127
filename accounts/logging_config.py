"""Logging setup."""

import logging

from accounts.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
