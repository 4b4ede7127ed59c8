"""Tests for the error log helpers."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from constants import LOG_FILE, TEMP_LOG_DIR
from utils.logging import (
    LOG_FILE_NAME,
    get_log_file,
    init_log_file,
    log_error,
    log_warning,
    update_log_file_path,
)


@pytest.fixture
def log_dir(tmp_path):
    previous = get_log_file()
    update_log_file_path(str(tmp_path / "logs"))
    yield tmp_path / "logs"
    update_log_file_path(os.path.dirname(previous))


def test_default_log_file_is_configured_path():
    assert os.path.dirname(LOG_FILE) == TEMP_LOG_DIR
    assert LOG_FILE_NAME == os.path.basename(LOG_FILE)


def test_update_log_file_path(log_dir):
    assert get_log_file() == os.path.join(str(log_dir), "error.log")
    assert log_dir.is_dir()


def test_init_then_log_error(log_dir):
    assert init_log_file() is True
    log_error("Seed generation failed: boom", "IntegrityFailure", "Traceback line")

    text = (log_dir / "error.log").read_text()
    assert text.startswith("Error Log - Started at")
    assert "Generator version:" in text
    assert "ERROR: Seed generation failed: boom" in text
    assert "Type: IntegrityFailure" in text
    assert "Traceback:\nTraceback line" in text


def test_init_truncates_previous_log(log_dir):
    log_error("old entry")
    init_log_file()
    assert "old entry" not in (log_dir / "error.log").read_text()


def test_log_warning(log_dir):
    init_log_file()
    log_warning("Sprite list refresh failed, using cache")
    assert "WARNING: Sprite list refresh failed, using cache" in (log_dir / "error.log").read_text()
