# SPDX-License-Identifier: MIT
"""Tests for log setup."""

from loguru import logger

from compass.utils.logging import setup_logging


def test_level_filters_records(capsys):
    setup_logging("WARNING")
    logger.info("lookup started")
    logger.warning("row returned twice")
    logger.remove()

    err = capsys.readouterr().err
    assert "row returned twice" in err
    assert "lookup started" not in err
