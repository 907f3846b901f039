"""Logging configuration for notebox."""

import sys

from loguru import logger


def configure_logging(*, verbose: bool = False) -> None:
    """Route notebox logs to stderr.

    At the default INFO level only warnings (a blob already missing from
    disk) and errors (failed background saves, rejected commands) are shown.
    ``verbose`` switches to DEBUG, which adds every store mutation, load
    summaries and save timings.
    """
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} {message}")
