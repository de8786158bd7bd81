"""
Filewatch Native Watcher.

Watches a file through the change notifications of the operating
system, using watchdog.
Requires Python 3.11+.
"""

import os
import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, NamedTuple

from filewatch.errors import SubscriptionClosed, WatcherConfigurationError, WatcherInitError
from filewatch.utils.config import get_settings
from filewatch.utils.ensure import ensure_not_none, ensure_that
from filewatch.watcher.base import FileWatcher, as_listener
from filewatch.watcher.clock import Clock, SystemClock
from filewatch.watcher.polling import PollingFileWatcher
from filewatch.watcher.scheduler import ScheduledTask, Scheduler, ThreadScheduler
from filewatch.watcher.subscription import (
    ALL_KINDS,
    DirectorySubscription,
    EventKind,
    subscribe,
)

Subscriber = Callable[[Path, Iterable[EventKind]], DirectorySubscription]


class ChangeStamp(NamedTuple):
    """
    Instant of a raw change event.

    Stamps order by arrival, the clock value only records when the
    event was seen. Events sharing a clock value stay distinct.
    """

    sequence: int
    time: int


_NEVER = ChangeStamp(sequence=-1, time=-1)


class NativeFileWatcher(FileWatcher):
    """
    Watches a single file using operating system change notifications.

    The parent directory of the file is subscribed to and every event for
    the file name arms a delayed notification. A notification is only
    delivered if no newer event arrived during the grace period, so a
    burst of events results in one call of the listener.

    If the parent directory does not exist yet, a PollingFileWatcher is
    used until the file shows up, then the watcher switches over to the
    directory subscription. Native notifications may not work on network
    filesystems such as NFS; use PollingFileWatcher there.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        listener: Any,
        grace_period_ms: int | None = None,
        clock: Clock | None = None,
        scheduler: Scheduler | None = None,
        subscriber: Subscriber | None = None,
    ) -> None:
        """
        Initialize the watcher and start listening.

        Args:
            path: File to watch, neither it nor its directory need to exist
            listener: Listener object or callable to notify about changes
            grace_period_ms: Quiet period before notifying, 0 notifies immediately
            clock: Time source for change stamps
            scheduler: Scheduler for delayed notifications
            subscriber: Opens the directory subscription

        Raises:
            WatcherConfigurationError: If an argument is invalid or the path
                has no parent directory
            WatcherInitError: If the directory subscription cannot be set up
        """
        ensure_not_none(path, "path")
        if grace_period_ms is None:
            grace_period_ms = get_settings().watcher.grace_period_ms
        ensure_that(grace_period_ms >= 0, "grace period >= 0")

        self._path = Path(os.path.abspath(path))
        self._directory = self._path.parent
        if self._directory == self._path:
            raise WatcherConfigurationError(f"File does not have a parent directory: {self._path}")

        self._listener = as_listener(listener)
        self._grace_period_ms = grace_period_ms
        self._clock: Clock = clock if clock is not None else SystemClock()
        self._scheduler: Scheduler = (
            scheduler if scheduler is not None else ThreadScheduler(name=f"native-{self._path.name}")
        )
        self._subscriber: Subscriber = subscriber if subscriber is not None else subscribe

        self._lock = threading.RLock()
        self._last_changed = _NEVER
        self._last_processed = _NEVER
        self._sequence = 0
        self._stopped = False
        self._subscription: DirectorySubscription | None = None
        self._listen_thread: threading.Thread | None = None
        self._delegate: PollingFileWatcher | None = None
        self._delivery: ScheduledTask | None = None

        with self._lock:
            self._start()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_running(self) -> bool:
        return not self._stopped

    @property
    def delegating(self) -> bool:
        """True while a polling watcher waits for the parent directory."""
        return self._delegate is not None

    @property
    def grace_period_ms(self) -> int:
        return self._grace_period_ms

    def stop(self) -> None:
        """Close the directory subscription and stop any polling delegate."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            subscription, self._subscription = self._subscription, None
            delegate, self._delegate = self._delegate, None
            self._scheduler.cancel_all()

        self._close_subscription(subscription)
        if delegate is not None:
            delegate.stop()
        self.log.info("native_watcher_stopped", path=str(self._path))

    def _start(self) -> None:
        if self._directory.is_dir():
            self._listen()
        else:
            self.log.info(
                "directory_missing_polling",
                path=str(self._path),
                directory=str(self._directory),
            )
            self._poll()

    def _poll(self) -> None:
        self._delegate = PollingFileWatcher(
            self._path,
            self._on_delegate_changed,
            poll_interval_ms=get_settings().watcher.fallback_poll_interval_ms,
            grace_period_ms=self._grace_period_ms,
        )

    def _listen(self) -> None:
        try:
            self._subscription = self._subscriber(self._directory, ALL_KINDS)
        except Exception as e:
            raise WatcherInitError(self._path) from e

        self._listen_thread = threading.Thread(
            target=self._event_loop,
            args=(self._subscription,),
            name=f"filewatch-{self._path.name}",
            daemon=True,
        )
        self._listen_thread.start()
        self.log.info("native_watcher_started", path=str(self._path))

    def _event_loop(self, subscription: DirectorySubscription) -> None:
        filename = self._path.name
        try:
            while not self._stopped:
                event = subscription.next_event()
                if event is None or event.kind is EventKind.OVERFLOW:
                    continue
                if event.name == filename:
                    self.log.debug("file_event", path=str(self._path), kind=event.kind.value)
                    self._on_change()
        except SubscriptionClosed:
            pass
        except Exception:
            self.log.exception("event_loop_failed", path=str(self._path))
            # Nothing listens anymore, report the watcher as stopped
            with self._lock:
                if self._subscription is subscription:
                    self._stopped = True
                    self._subscription = None
                    self._scheduler.cancel_all()
        finally:
            self._close_subscription(subscription)

    def _on_change(self) -> None:
        if self._grace_period_ms == 0:
            with self._lock:
                if self._stopped:
                    return
                self._notify(self._listener)
            return

        with self._lock:
            if self._stopped:
                return
            self._sequence += 1
            stamp = ChangeStamp(sequence=self._sequence, time=self._clock.now())
            self._last_changed = stamp
            # One delivery per watcher is outstanding, a newer event replaces it
            if self._delivery is not None:
                self._delivery.cancel()
            self._delivery = self._scheduler.schedule_once(
                lambda: self._deliver(stamp), self._grace_period_ms
            )

    def _deliver(self, stamp: ChangeStamp) -> None:
        with self._lock:
            if self._stopped:
                return
            # Only the callback of the latest event delivers, and only once
            if stamp == self._last_changed and self._last_processed < self._last_changed:
                self._last_processed = self._last_changed
                self._notify(self._listener)

    def _on_delegate_changed(self) -> None:
        with self._lock:
            if self._stopped:
                return
            delegate, self._delegate = self._delegate, None
            if delegate is not None:
                delegate.stop()
            # A file in the directory was written, so the directory exists
            # unless it was removed again in the meantime
            try:
                self._start()
            except WatcherInitError as e:
                self.log.warning(
                    "native_events_unavailable",
                    path=str(self._path),
                    error=str(e.__cause__ or e),
                )
                self._poll()
            if self._delegate is None:
                self.log.info("switched_to_native_events", path=str(self._path))
            self._notify(self._listener)

    def _close_subscription(self, subscription: DirectorySubscription | None) -> None:
        if subscription is None:
            return
        try:
            subscription.close()
        except Exception as e:
            self.log.info(
                "subscription_close_failed",
                path=str(self._path),
                error=str(e),
            )
