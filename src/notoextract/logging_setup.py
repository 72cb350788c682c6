"""Logging configuration for CLI and embedding applications."""

import logging
from typing import Union

from rich.logging import RichHandler

PACKAGE_LOGGER = "notoextract"


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Attach a RichHandler to the package logger.

    Calling this more than once only updates the level.

    Args:
        level: Logging level name or number.

    Returns:
        The configured package logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(show_path=False, rich_tracebacks=False)
        handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))
        logger.addHandler(handler)

    return logger
