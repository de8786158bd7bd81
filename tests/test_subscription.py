"""
Tests for the Directory Subscription.

Requires Python 3.11+.
"""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest
from watchdog.events import (
    DirCreatedEvent,
    DirModifiedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from filewatch.errors import SubscriptionClosed
from filewatch.utils.files import write_text_file
from filewatch.watcher.subscription import (
    DirectoryEvent,
    DirectorySubscription,
    EventKind,
    subscribe,
)


@pytest.fixture
def observer() -> Mock:
    """Stand-in for the watchdog observer."""
    return Mock()


@pytest.fixture
def subscription(tmp_path: Path, observer: Mock) -> DirectorySubscription:
    """Subscription fed directly with watchdog events."""
    return DirectorySubscription(tmp_path, observer_factory=lambda: observer)


class TestSubscriptionEvents:
    """Test cases for translating watchdog events."""

    def test_starts_observer_on_directory(self, tmp_path: Path, subscription: DirectorySubscription, observer: Mock):
        """Test the observer watches the directory non-recursively."""
        observer.schedule.assert_called_once_with(subscription, str(tmp_path), recursive=False)
        observer.start.assert_called_once()

    def test_file_events_are_queued(self, tmp_path: Path, subscription: DirectorySubscription):
        """Test created, modified and deleted events carry the file name."""
        subscription.on_created(FileCreatedEvent(str(tmp_path / "a.txt")))
        subscription.on_modified(FileModifiedEvent(str(tmp_path / "a.txt")))
        subscription.on_deleted(FileDeletedEvent(str(tmp_path / "a.txt")))

        assert subscription.next_event(timeout=1) == DirectoryEvent(EventKind.CREATED, "a.txt")
        assert subscription.next_event(timeout=1) == DirectoryEvent(EventKind.MODIFIED, "a.txt")
        assert subscription.next_event(timeout=1) == DirectoryEvent(EventKind.DELETED, "a.txt")

    def test_directory_events_are_ignored(self, tmp_path: Path, subscription: DirectorySubscription):
        """Test events for subdirectories are dropped."""
        subscription.on_created(DirCreatedEvent(str(tmp_path / "sub")))
        subscription.on_modified(DirModifiedEvent(str(tmp_path)))

        assert subscription.next_event(timeout=0.05) is None

    def test_rename_is_delete_and_create(self, tmp_path: Path, subscription: DirectorySubscription):
        """Test a temp-file-then-rename save reports the target name."""
        subscription.on_moved(FileMovedEvent(str(tmp_path / "a.tmp"), str(tmp_path / "a.txt")))

        assert subscription.next_event(timeout=1) == DirectoryEvent(EventKind.DELETED, "a.tmp")
        assert subscription.next_event(timeout=1) == DirectoryEvent(EventKind.CREATED, "a.txt")

    def test_rename_out_of_directory(self, tmp_path: Path, subscription: DirectorySubscription):
        """Test moving a file elsewhere only reports the deletion."""
        subscription.on_moved(FileMovedEvent(str(tmp_path / "a.txt"), str(tmp_path.parent / "a.txt")))

        assert subscription.next_event(timeout=1) == DirectoryEvent(EventKind.DELETED, "a.txt")
        assert subscription.next_event(timeout=0.05) is None

    def test_kinds_are_filtered(self, tmp_path: Path, observer: Mock):
        """Test only requested kinds are delivered."""
        subscription = DirectorySubscription(tmp_path, [EventKind.DELETED], observer_factory=lambda: observer)

        subscription.on_modified(FileModifiedEvent(str(tmp_path / "a.txt")))
        subscription.on_deleted(FileDeletedEvent(str(tmp_path / "a.txt")))

        assert subscription.next_event(timeout=1) == DirectoryEvent(EventKind.DELETED, "a.txt")
        assert subscription.next_event(timeout=0.05) is None


class TestSubscriptionClose:
    """Test cases for closing."""

    def test_close_stops_observer(self, subscription: DirectorySubscription, observer: Mock):
        """Test close stops the observer once."""
        subscription.close()
        subscription.close()

        observer.stop.assert_called_once()
        assert subscription.closed

    def test_next_event_after_close_raises(self, subscription: DirectorySubscription):
        """Test waiting consumers are released."""
        subscription.close()

        with pytest.raises(SubscriptionClosed):
            subscription.next_event()
        with pytest.raises(SubscriptionClosed):
            subscription.next_event(timeout=1)

    def test_events_after_close_are_dropped(self, tmp_path: Path, subscription: DirectorySubscription):
        """Test late watchdog callbacks are ignored."""
        subscription.close()
        subscription.on_created(FileCreatedEvent(str(tmp_path / "a.txt")))

        with pytest.raises(SubscriptionClosed):
            subscription.next_event(timeout=1)


class TestSubscribe:
    """Test cases using watchdog itself."""

    @pytest.mark.skipif(sys.platform != "linux", reason="inotify rejects missing directories up front")
    def test_missing_directory_fails(self, tmp_path: Path):
        """Test subscribing to a missing directory raises."""
        with pytest.raises(OSError):
            subscribe(tmp_path / "missing")

    @pytest.mark.skipif(sys.platform != "linux", reason="relies on inotify delivering events promptly")
    def test_real_write_is_reported(self, tmp_path: Path):
        """Test writing a file produces an event with its name."""
        subscription = subscribe(tmp_path)
        try:
            write_text_file(tmp_path / "real.txt", "text")

            event = subscription.next_event(timeout=3)

            assert event is not None
            assert event.name == "real.txt"
            assert event.kind in (EventKind.CREATED, EventKind.MODIFIED)
        finally:
            subscription.close()
