"""
TagWeave Utilities Package.

Common utilities shared across all backend modules.
Requires Python 3.11+.
"""

from utils.config import Settings, get_settings, read_monitor_path
from utils.logger import configure_logging, get_logger, LoggerMixin
from utils.paths import is_ignored, matches_extension, resolve_relative, same_path

__all__ = [
    "Settings",
    "get_settings",
    "read_monitor_path",
    "configure_logging",
    "get_logger",
    "LoggerMixin",
    "is_ignored",
    "matches_extension",
    "resolve_relative",
    "same_path",
]
