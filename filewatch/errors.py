"""
Filewatch Errors.

Exceptions raised by the watchers.
Requires Python 3.11+.
"""

from pathlib import Path


class FileWatcherError(Exception):
    """Base class for all file watcher errors."""


class WatcherConfigurationError(FileWatcherError, ValueError):
    """Raised when a watcher is constructed with invalid arguments."""


class WatcherInitError(FileWatcherError, RuntimeError):
    """Raised when the directory subscription for a watched file cannot be set up."""

    def __init__(self, path: Path, message: str | None = None) -> None:
        self.path = path
        super().__init__(message or f"Could not initialize file watcher for {path}")


class SubscriptionClosed(FileWatcherError):
    """Signals that a directory subscription was closed while waiting for events."""
