"""Confirmation gate for destructive operations."""

from collections.abc import Callable
from typing import Optional

from loguru import logger

ConfirmFn = Callable[[str], bool]


def confirmed(prompt: str, confirm: Optional[ConfirmFn] = None, assume_yes: bool = False) -> bool:
    """
    True only when the caller affirmatively agreed.

    Args:
        prompt: Question shown to the user
        confirm: Callable asking the question; None means nobody can agree
        assume_yes: Explicit "proceed" flag (e.g. --yes)
    """
    if assume_yes:
        logger.info("--yes provided, proceeding without prompt")
        return True
    if confirm is None:
        logger.info("No confirmation available; nothing will be changed")
        return False
    return bool(confirm(prompt))
