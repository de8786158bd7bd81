"""
Filewatch Watcher Contracts.

Listener and watcher interfaces shared by both watch strategies.
Requires Python 3.11+.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from filewatch.errors import WatcherConfigurationError
from filewatch.utils.logger import LoggerMixin


@runtime_checkable
class FileChangeListener(Protocol):
    """
    Receives a notification after a watched file has settled.

    The notification carries no payload; listeners re-read the file
    themselves to learn its new content.
    """

    def on_changed(self) -> None: ...


class CallbackListener:
    """
    Adapts a plain callable to the listener interface.

    Coroutine functions are scheduled on the given event loop, since
    notifications are delivered from background threads.
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._callback = callback
        self._loop = loop

    def set_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Set the event loop for async callbacks."""
        self._loop = loop

    def on_changed(self) -> None:
        if inspect.iscoroutinefunction(self._callback):
            if self._loop is not None:
                asyncio.run_coroutine_threadsafe(self._callback(), self._loop)
            else:
                asyncio.run(self._callback())
        else:
            self._callback()


def as_listener(
    target: Any,
    loop: asyncio.AbstractEventLoop | None = None,
) -> FileChangeListener:
    """
    Coerce a listener argument.

    Args:
        target: Object with an ``on_changed`` method, or a callable
        loop: Event loop used for coroutine callbacks

    Returns:
        A listener object
    """
    if target is None:
        raise WatcherConfigurationError('"listener" must not be None')
    if callable(getattr(target, "on_changed", None)):
        return target
    if callable(target):
        return CallbackListener(target, loop=loop)
    raise WatcherConfigurationError(
        f"listener must define on_changed() or be callable, got {type(target).__name__}"
    )


class FileWatcher(ABC, LoggerMixin):
    """
    Watches a single file for changes until stopped.

    A stopped watcher cannot be restarted; create a new one to resume
    watching. Background threads are only released by ``stop()``, so
    either call it explicitly or use the watcher as a context manager.
    """

    @property
    @abstractmethod
    def path(self) -> Path:
        """Absolute path of the watched file."""

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """Check if the watcher still delivers notifications."""

    @abstractmethod
    def stop(self) -> None:
        """Stop watching the file. Calling it again has no effect."""

    def _notify(self, listener: FileChangeListener) -> None:
        """Deliver one notification, containing listener failures."""
        self.log.debug("notifying_listener", path=str(self.path))
        try:
            listener.on_changed()
        except Exception as e:
            self.log.error(
                "listener_failed",
                path=str(self.path),
                error=str(e),
                exc_info=True,
            )

    def __enter__(self) -> "FileWatcher":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.stop()
