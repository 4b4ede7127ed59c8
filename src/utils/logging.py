"""
Error log for the LTTP Randomizer Generator.

One plain-text file, error.log, restarted on every run. Entries carry a
timestamp, a level, the exception type and the formatted traceback so a
failed seed can be reported without re-running it.
"""

import os
import sys
from datetime import datetime
from typing import Optional

from constants import APP_VERSION, ALTTPR_BASE_URL, CONFIG_FILE, LOG_FILE

LOG_FILE_NAME = os.path.basename(LOG_FILE)
_SEPARATOR = "-" * 80

# Module-level log file path
_log_file: str = LOG_FILE


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _append(entry: str) -> None:
    try:
        with open(_log_file, "a") as f:
            f.write(entry)
    except OSError as e:
        # Console is the only place left to report to
        print(f"Failed to write to log file: {e}")
        print(entry)


def get_log_file() -> str:
    """Get the current log file path."""
    return _log_file


def update_log_file_path(work_dir: str) -> None:
    """
    Move error.log into work_dir (used by the CLI's --log-dir).

    Args:
        work_dir: Directory that should hold error.log; created if missing
    """
    global _log_file
    os.makedirs(work_dir, exist_ok=True)
    _log_file = os.path.join(work_dir, LOG_FILE_NAME)


def log_error(
    error_msg: str,
    error_type: Optional[str] = None,
    traceback_str: Optional[str] = None,
) -> None:
    """
    Append an error entry.

    Args:
        error_msg: What failed, e.g. "Seed generation failed: <reason>"
        error_type: Exception class name
        traceback_str: traceback.format_exc() output
    """
    lines = [f"[{_now()}] ERROR: {error_msg}"]
    if error_type:
        lines.append(f"Type: {error_type}")
    if traceback_str:
        lines.append(f"Traceback:\n{traceback_str}")
    lines.append(_SEPARATOR)
    _append("\n".join(lines) + "\n")


def log_warning(message: str) -> None:
    """Append a one-line warning for recoverable problems (offline cache use, skipped data)."""
    _append(f"[{_now()}] WARNING: {message}\n")


def init_log_file() -> bool:
    """
    Start a fresh error.log headed with version and environment details.

    Returns:
        True if the file could be written
    """
    header = [
        f"Error Log - Started at {_now()}",
        f"Generator version: {APP_VERSION}",
        f"Python version: {sys.version}",
        f"Platform: {sys.platform}",
        f"Service: {ALTTPR_BASE_URL}",
        f"Config: {CONFIG_FILE}",
        _SEPARATOR,
    ]
    try:
        os.makedirs(os.path.dirname(_log_file) or ".", exist_ok=True)
        with open(_log_file, "w") as f:
            f.write("\n".join(header) + "\n")
        return True
    except OSError as e:
        print(f"Failed to initialize log file: {e}")
        return False
