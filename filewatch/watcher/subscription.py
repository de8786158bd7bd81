"""
Filewatch Directory Subscription.

Turns watchdog callbacks for one directory into a blocking stream of
events.
Requires Python 3.11+.
"""

import os
import queue
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from filewatch.errors import SubscriptionClosed
from filewatch.utils.config import get_settings
from filewatch.utils.logger import LoggerMixin


class EventKind(str, Enum):
    """Kinds of directory entry changes."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    OVERFLOW = "overflow"


ALL_KINDS = frozenset({EventKind.CREATED, EventKind.MODIFIED, EventKind.DELETED})


@dataclass(frozen=True)
class DirectoryEvent:
    """A change to one entry of the subscribed directory."""

    kind: EventKind
    name: str


_CLOSED = object()


class DirectorySubscription(FileSystemEventHandler, LoggerMixin):
    """
    Subscription to the changes of the direct children of one directory.

    Watchdog delivers events on its observer thread; they are queued
    here and consumed with next_event(). Renames inside the directory
    arrive as a deletion of the old name followed by a creation of the
    new one.
    """

    def __init__(
        self,
        directory: Path,
        kinds: Iterable[EventKind] = ALL_KINDS,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        """
        Start observing a directory.

        Args:
            directory: Directory whose entries are watched (not recursive)
            kinds: Event kinds to deliver
            observer_factory: Creates the watchdog observer

        Raises:
            OSError: If the directory cannot be watched
        """
        super().__init__()
        self._directory = Path(directory)
        self._kinds = frozenset(kinds)
        self._queue: queue.Queue[Any] = queue.Queue()
        self._closed = False

        self._observer = observer_factory()
        self._observer.schedule(self, str(self._directory), recursive=False)
        self._observer.daemon = True
        self._observer.start()

        self.log.debug(
            "subscription_opened",
            directory=str(self._directory),
            kinds=sorted(kind.value for kind in self._kinds),
        )

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def closed(self) -> bool:
        return self._closed

    def on_created(self, event: FileCreatedEvent | DirCreatedEvent) -> None:
        """Handle entry creation."""
        if not event.is_directory:
            self._offer(EventKind.CREATED, event.src_path)

    def on_modified(self, event: FileModifiedEvent | DirModifiedEvent) -> None:
        """Handle entry modification."""
        if not event.is_directory:
            self._offer(EventKind.MODIFIED, event.src_path)

    def on_deleted(self, event: FileDeletedEvent | DirDeletedEvent) -> None:
        """Handle entry deletion."""
        if not event.is_directory:
            self._offer(EventKind.DELETED, event.src_path)

    def on_moved(self, event: FileMovedEvent | DirMovedEvent) -> None:
        """Handle rename, as deletion of the source and creation of the target."""
        if event.is_directory:
            return
        self._offer(EventKind.DELETED, event.src_path)
        dest = os.fsdecode(event.dest_path)
        # Rename targets may lie outside the subscribed directory
        if os.path.realpath(os.path.dirname(dest)) == os.path.realpath(self._directory):
            self._offer(EventKind.CREATED, dest)

    def next_event(self, timeout: float | None = None) -> DirectoryEvent | None:
        """
        Wait for the next event.

        Args:
            timeout: Seconds to wait, None blocks until an event arrives

        Returns:
            The next event, or None if the timeout expired

        Raises:
            SubscriptionClosed: Once the subscription has been closed
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            # Keep the marker for any other consumer blocked on the queue
            self._queue.put(_CLOSED)
            raise SubscriptionClosed(f"Subscription for {self._directory} is closed")
        return item

    def close(self) -> None:
        """Stop the observer and wake up waiting consumers."""
        if self._closed:
            return
        self._closed = True
        self._queue.put(_CLOSED)
        try:
            self._observer.stop()
            self._observer.join(timeout=get_settings().watcher.observer_join_timeout)
        finally:
            self.log.debug("subscription_closed", directory=str(self._directory))

    def _offer(self, kind: EventKind, src_path: str | bytes) -> None:
        if self._closed or kind not in self._kinds:
            return
        name = os.path.basename(os.fsdecode(src_path))
        self._queue.put(DirectoryEvent(kind=kind, name=name))


def subscribe(
    directory: Path,
    kinds: Iterable[EventKind] = ALL_KINDS,
) -> DirectorySubscription:
    """Subscribe to create, modify and delete events of a directory."""
    return DirectorySubscription(directory, kinds)
