"""
Filewatch Watcher Factory.

Requires Python 3.11+.
"""

import os
from enum import Enum
from typing import Any

from filewatch.errors import WatcherConfigurationError
from filewatch.watcher.base import FileWatcher
from filewatch.watcher.native import NativeFileWatcher
from filewatch.watcher.polling import PollingFileWatcher


class WatchStrategy(str, Enum):
    """How changes of the watched file are detected."""

    POLL = "poll"
    EVENT = "event"


def create_watcher(
    path: str | os.PathLike[str],
    listener: Any,
    strategy: WatchStrategy | str = WatchStrategy.EVENT,
    **options: Any,
) -> FileWatcher:
    """
    Create a watcher for a single file.

    Args:
        path: File to watch
        listener: Listener object or callable to notify about changes
        strategy: Detection strategy, operating system events by default
        **options: Passed on to the watcher class, e.g. grace_period_ms

    Returns:
        A started watcher
    """
    try:
        strategy = WatchStrategy(strategy)
    except ValueError as e:
        allowed = ", ".join(s.value for s in WatchStrategy)
        raise WatcherConfigurationError(f"strategy must be one of: {allowed}") from e

    if strategy is WatchStrategy.POLL:
        return PollingFileWatcher(path, listener, **options)
    return NativeFileWatcher(path, listener, **options)
