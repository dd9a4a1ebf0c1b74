"""Logging setup using loguru."""

import sys

from loguru import logger

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """
    Replace loguru's default sink with a stderr sink at the given level.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR)
        verbose: Force DEBUG regardless of ``level``
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else level.upper(),
        format=CONSOLE_FORMAT,
        colorize=None,
    )
