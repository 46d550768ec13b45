"""Tests for utils.logging_setup."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

import pytest

from utils.logging_setup import configure_logging


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_console_only(restore_root: logging.Logger):
    configure_logging("debug")
    assert restore_root.level == logging.DEBUG
    assert len(restore_root.handlers) == 1
    assert not isinstance(restore_root.handlers[0], logging.handlers.TimedRotatingFileHandler)


def test_daily_file(restore_root: logging.Logger, tmp_path: Path):
    configure_logging("INFO", tmp_path / "logs")
    file_handlers = [
        h for h in restore_root.handlers if isinstance(h, logging.handlers.TimedRotatingFileHandler)
    ]
    assert len(file_handlers) == 1
    logging.getLogger("test").info("hola")
    file_handlers[0].flush()
    assert "hola" in (tmp_path / "logs" / "log.txt").read_text(encoding="utf-8")
