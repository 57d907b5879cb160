"""Logging setup for the command-line tool."""

import logging
import sys
from typing import Optional, TextIO

LOG_PREFIX = "▎"


class LevelPrefixFormatter(logging.Formatter):
    """Prefix non-info records with their level, e.g. "[warning] disk full"."""

    LEVEL_TAGS = {
        logging.DEBUG: "[debug] ",
        logging.WARNING: "[warning] ",
        logging.ERROR: "[error] ",
        logging.CRITICAL: "[error] ",
    }

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return LOG_PREFIX + self.LEVEL_TAGS.get(record.levelno, "") + message


def configure_logging(debug: bool = False, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Install a single stream handler on the package logger.

    Args:
        debug: Log debug records too
        stream: Output stream (default: stderr)

    Returns:
        The package logger
    """
    logger = logging.getLogger("smolmsg")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(LevelPrefixFormatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False
    return logger
