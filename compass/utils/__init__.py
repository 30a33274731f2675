"""Utility modules for the maintenance toolkit."""

from compass.utils.logging import setup_logging
from compass.utils.text import (
    name_tokens,
    normalize,
    normalize_for_key,
    sanitize_filename,
)

__all__ = [
    # Logging
    "setup_logging",
    # Text utilities
    "normalize",
    "normalize_for_key",
    "name_tokens",
    "sanitize_filename",
]
