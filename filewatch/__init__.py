"""
Filewatch.

Watch a single file and get notified once per settled change.
Requires Python 3.11+.
"""

from filewatch.errors import (
    FileWatcherError,
    SubscriptionClosed,
    WatcherConfigurationError,
    WatcherInitError,
)
from filewatch.watcher import (
    CallbackListener,
    FileChangeListener,
    FileWatcher,
    NativeFileWatcher,
    PollingFileWatcher,
    WatchStrategy,
    create_watcher,
)

__version__ = "0.1.0"

__all__ = [
    "CallbackListener",
    "FileChangeListener",
    "FileWatcher",
    "FileWatcherError",
    "NativeFileWatcher",
    "PollingFileWatcher",
    "SubscriptionClosed",
    "WatchStrategy",
    "WatcherConfigurationError",
    "WatcherInitError",
    "create_watcher",
]
