"""Unit tests for log module."""

import pytest
from loguru import logger

from soundtrack_downloader.log import setup_logging


@pytest.fixture(autouse=True)
def restore_sinks():
    yield
    logger.remove()


def test_level_filters_messages(capsys):
    setup_logging("warning")
    logger.info("hidden message")
    logger.warning("shown message")

    err = capsys.readouterr().err
    assert "shown message" in err
    assert "hidden message" not in err


def test_verbose_forces_debug(capsys):
    setup_logging("ERROR", verbose=True)
    logger.debug("debug message")

    assert "debug message" in capsys.readouterr().err
