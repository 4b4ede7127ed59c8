"""
Utility functions for the LTTP Randomizer Generator.
"""

from .logging import log_error, log_warning, update_log_file_path, get_log_file, init_log_file

__all__ = [
    "log_error",
    "log_warning",
    "update_log_file_path",
    "get_log_file",
    "init_log_file",
]
