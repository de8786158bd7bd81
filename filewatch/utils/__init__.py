"""
Filewatch Utilities Package.

Settings, logging and small filesystem helpers.
Requires Python 3.11+.
"""

from filewatch.utils.config import Settings, get_settings
from filewatch.utils.logger import configure_logging, get_logger, logger, LoggerMixin

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "logger",
    "LoggerMixin",
]
