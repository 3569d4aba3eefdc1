"""
Logging setup.

Curses owns the terminal while the editor runs, so records only ever go to a
rotating log file attached to the ``hxedit`` logger.
"""

import logging
import logging.handlers
import os
import sys
import tempfile
from typing import Final

from .config import EditorConfig

LOGGER_NAME: Final[str] = "hxedit"
LOG_FORMAT: Final[str] = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def _log_path(configured: str) -> str:
    """Expand the configured path, falling back to the temp directory if its directory is unusable."""

    path = os.path.expanduser(configured)
    log_dir = os.path.dirname(path)
    if log_dir and not os.path.isdir(log_dir):
        try:
            os.makedirs(log_dir, exist_ok=True)
        except OSError as e:
            print(f"Cannot create log directory {log_dir}: {e}", file=sys.stderr)
            return os.path.join(tempfile.gettempdir(), os.path.basename(path) or "hxedit.log")

    return path


def setup_logging(config: EditorConfig) -> logging.Logger:
    """
    Attach a rotating file handler to the ``hxedit`` logger.

    Handlers from an earlier call are closed and replaced, so calling this
    twice never duplicates records.

    Args:
        config: Resolved editor configuration

    Returns:
        The configured ``hxedit`` logger
    """

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = getattr(logging, config.log_level.upper(), logging.INFO)
    logger.setLevel(level)
    logger.propagate = False

    path = _log_path(config.log_file)
    try:
        handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        print(f"Cannot open log file {path}: {e}", file=sys.stderr)
        logger.addHandler(logging.NullHandler())
        return logger

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.debug("Logging to %s at %s", path, logging.getLevelName(level))

    return logger
