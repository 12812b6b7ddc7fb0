"""
Tests for the service logging setup.
"""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

import pytest

from core.logging_setup import LOG_BACKUP_COUNT, LOG_MAX_BYTES, setup_logging

pytestmark = pytest.mark.unit


def test_defaults_to_config_directory(tmp_path):
    with patch('core.logging_setup.Path.home', return_value=tmp_path):
        log_file = setup_logging()

    assert log_file == tmp_path / ".goldboard" / "app.log"
    assert log_file.exists()


def test_explicit_directory_is_created(tmp_path):
    log_file = setup_logging(log_dir=tmp_path / "logs" / "nested")

    assert log_file.parent.is_dir()


def test_debug_switches_root_level(tmp_path):
    setup_logging(debug=True, log_dir=tmp_path)
    assert logging.getLogger().level == logging.DEBUG

    setup_logging(debug=False, log_dir=tmp_path)
    assert logging.getLogger().level == logging.INFO


def test_rotating_file_plus_console(tmp_path):
    setup_logging(log_dir=tmp_path)

    handlers = logging.getLogger().handlers
    assert len(handlers) == 2
    rotating = [h for h in handlers if isinstance(h, RotatingFileHandler)]
    assert len(rotating) == 1
    assert rotating[0].maxBytes == LOG_MAX_BYTES
    assert rotating[0].backupCount == LOG_BACKUP_COUNT


def test_repeated_setup_replaces_handlers(tmp_path):
    for _ in range(3):
        setup_logging(log_dir=tmp_path)

    assert len(logging.getLogger().handlers) == 2


@pytest.mark.parametrize("name", ["urllib3", "uvicorn.access"])
def test_third_party_loggers_quiet_unless_debug(tmp_path, name):
    setup_logging(log_dir=tmp_path)
    assert logging.getLogger(name).level == logging.WARNING

    setup_logging(debug=True, log_dir=tmp_path)
    assert logging.getLogger(name).level == logging.INFO


def test_records_carry_thread_name(tmp_path):
    log_file = setup_logging(log_dir=tmp_path)

    logging.getLogger("goldboard.test").info("price fetch finished")
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "MainThread goldboard.test - price fetch finished" in text
