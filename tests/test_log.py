from __future__ import annotations

import logging
import logging.handlers
import os
import tempfile
from pathlib import Path

import pytest

from hxedit.config import EditorConfig
from hxedit.log import setup_logging


@pytest.fixture(autouse=True)
def _restore_hxedit_logger():
    logger = logging.getLogger("hxedit")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    handlers, level, propagate = saved
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


def test_logs_go_to_rotating_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "hxedit.log"
    config = EditorConfig(log_file=str(log_file), log_level="DEBUG", log_max_bytes=4096, log_backup_count=2)

    logger = setup_logging(config)
    logging.getLogger("hxedit.core.buffer").info("opened something")
    for handler in logger.handlers:
        handler.flush()

    [handler] = logger.handlers
    assert isinstance(handler, logging.handlers.RotatingFileHandler)
    assert handler.maxBytes == 4096
    assert handler.backupCount == 2
    assert logger.level == logging.DEBUG
    assert not logger.propagate
    assert "INFO - hxedit.core.buffer - opened something" in log_file.read_text(encoding="utf-8")


def test_repeated_setup_replaces_handler(tmp_path: Path) -> None:
    config = EditorConfig(log_file=str(tmp_path / "a.log"))

    setup_logging(config)
    logger = setup_logging(config)

    assert len(logger.handlers) == 1


def test_unusable_log_directory_falls_back_to_temp(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    config = EditorConfig(log_file=str(blocker / "sub" / "hxedit-test.log"))

    logger = setup_logging(config)

    [handler] = logger.handlers
    assert handler.baseFilename == os.path.abspath(os.path.join(tempfile.gettempdir(), "hxedit-test.log"))
