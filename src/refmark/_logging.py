"""Logging setup for the refmark CLI.

Library modules only create loggers (``log = logging.getLogger(__name__)``);
handlers are installed here, once, by the command line entry point.

REFMARK_LOG_LEVEL picks the level: DEBUG shows parsed fragments and
rewritten links, WARNING (the default) only handled surprises.
"""

import logging
import os
import sys

PACKAGE_LOGGER = "refmark"
LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def _level_from_env() -> int:
    name = os.environ.get("REFMARK_LOG_LEVEL", "WARNING").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.WARNING


def configure_logging() -> logging.Logger:
    """Attach a stderr handler to the package logger.

    Repeat calls leave an already configured logger alone.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    if logger.handlers:
        return logger

    level = _level_from_env()
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.setLevel(level)
    logger.addHandler(handler)
    # Messages stop here; the host application's root handlers never see them
    logger.propagate = False
    return logger


def set_quiet_mode(quiet: bool) -> None:
    """Only let errors through the package logger while quiet."""
    if not quiet:
        return
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.ERROR)
    for handler in logger.handlers:
        handler.setLevel(logging.ERROR)
