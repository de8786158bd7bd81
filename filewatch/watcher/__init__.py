"""
Filewatch Watcher Package.

Single file watchers with debounced change notification.
Requires Python 3.11+.
"""

from filewatch.watcher.base import CallbackListener, FileChangeListener, FileWatcher
from filewatch.watcher.factory import WatchStrategy, create_watcher
from filewatch.watcher.native import NativeFileWatcher
from filewatch.watcher.polling import PollingFileWatcher

__all__ = [
    "CallbackListener",
    "FileChangeListener",
    "FileWatcher",
    "NativeFileWatcher",
    "PollingFileWatcher",
    "WatchStrategy",
    "create_watcher",
]
