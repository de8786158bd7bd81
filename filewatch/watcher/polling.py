"""
Filewatch Polling Watcher.

Detects changes by comparing the modification timestamp of a file
at a fixed interval.
Requires Python 3.11+.
"""

import os
import threading
from pathlib import Path
from typing import Any

from filewatch.errors import WatcherConfigurationError
from filewatch.utils.config import get_settings
from filewatch.utils.ensure import ensure_not_none, ensure_that
from filewatch.utils.files import last_modified_ns
from filewatch.watcher.base import FileWatcher, as_listener
from filewatch.watcher.scheduler import Scheduler, ThreadScheduler


class PollingFileWatcher(FileWatcher):
    """
    Watches a single file by polling its modification timestamp.

    A detected change is not reported right away. The watcher waits for
    a grace period and checks the timestamp again; only when the file
    did not change during the whole grace period is the listener
    notified. Writers that truncate a file and then fill it, or save it
    several times in a row, therefore produce one notification.

    The grace period should be at least as large as the timestamp
    granularity of the underlying filesystem. Otherwise a fast second
    write may not move the timestamp and the listener sees the file
    before it was completely written.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        listener: Any,
        poll_interval_ms: int | None = None,
        grace_period_ms: int | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        """
        Initialize the watcher and start polling.

        Args:
            path: File to watch, it does not need to exist yet
            listener: Listener object or callable to notify about changes
            poll_interval_ms: Timestamp check interval in milliseconds
            grace_period_ms: Quiet period before notifying, 0 notifies immediately
            scheduler: Scheduler running the checks, a private one by default
        """
        ensure_not_none(path, "path")
        settings = get_settings().watcher
        if poll_interval_ms is None:
            poll_interval_ms = settings.poll_interval_ms
        if grace_period_ms is None:
            grace_period_ms = settings.grace_period_ms
        ensure_that(poll_interval_ms > 0, "poll interval > 0")
        ensure_that(grace_period_ms >= 0, "grace period >= 0")

        self._path = Path(os.path.abspath(path))
        if self._path.parent == self._path:
            raise WatcherConfigurationError(f"File does not have a parent directory: {self._path}")
        self._listener = as_listener(listener)
        self._poll_interval_ms = poll_interval_ms
        self._grace_period_ms = grace_period_ms
        self._scheduler: Scheduler = (
            scheduler if scheduler is not None else ThreadScheduler(name=f"poll-{self._path.name}")
        )

        # Reentrant so a listener may stop the watcher from its callback
        self._lock = threading.RLock()
        self._last_seen: int | None = None
        self._pending = False
        self._stopped = False

        # Baseline, changes made before construction are not reported
        try:
            self._changed()
        except OSError as e:
            self.log.warning("baseline_check_failed", path=str(self._path), error=str(e))

        self._scheduler.schedule_repeating(self.check, poll_interval_ms, poll_interval_ms)

        self.log.info(
            "polling_watcher_started",
            path=str(self._path),
            poll_interval_ms=poll_interval_ms,
            grace_period_ms=grace_period_ms,
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_running(self) -> bool:
        return not self._stopped

    @property
    def pending(self) -> bool:
        """True while a detected change waits for the grace period to pass."""
        return self._pending

    @property
    def poll_interval_ms(self) -> int:
        return self._poll_interval_ms

    @property
    def grace_period_ms(self) -> int:
        return self._grace_period_ms

    def check(self) -> None:
        """
        Run one detection tick.

        Called periodically by the scheduler. Read errors are logged and
        the tick counts as unchanged, so the next tick simply tries again.
        """
        with self._lock:
            if self._stopped or self._pending:
                return
            try:
                changed = self._changed()
            except Exception as e:
                self.log.warning("timestamp_check_failed", path=str(self._path), error=str(e))
                return
            if not changed:
                return

            self.log.debug("change_detected", path=str(self._path))
            if self._grace_period_ms > 0:
                self._pending = True
                self._arm()
            else:
                self._notify(self._listener)

    def settle(self) -> None:
        """
        Run one debounce callback.

        Notifies the listener if the file did not change since the last
        check, otherwise waits for another grace period.
        """
        with self._lock:
            if self._stopped:
                return
            try:
                changed = self._changed()
            except Exception as e:
                self.log.warning("timestamp_check_failed", path=str(self._path), error=str(e))
                self._arm()
                return

            if changed:
                self.log.debug("change_still_in_progress", path=str(self._path))
                self._arm()
            else:
                self._pending = False
                self._notify(self._listener)

    def stop(self) -> None:
        """Stop polling and drop any pending notification."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._pending = False
            self._scheduler.cancel_all()
        self.log.info("polling_watcher_stopped", path=str(self._path))

    def _arm(self) -> None:
        self._scheduler.schedule_once(self.settle, self._grace_period_ms)

    def _changed(self) -> bool:
        current = last_modified_ns(self._path)
        if current is None:
            # Disappearing is a change, staying absent is not
            if self._last_seen is None:
                return False
            self._last_seen = None
            return True
        if self._last_seen is None or current > self._last_seen:
            self._last_seen = current
            return True
        return False
