"""Loguru setup for the maintenance commands."""

import os
import sys

from loguru import logger

from compass.config import settings

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str | None = None) -> None:
    """Send log records to stderr at ``level`` (settings default)."""
    level = level or settings.maintenance.log_level
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, colorize=True)
    logger.debug(f"Logging configured: level={level}")


# DISABLE_LOGGING=1 keeps loguru's default sink (tests set it)
if os.environ.get("DISABLE_LOGGING") != "1":
    setup_logging()
