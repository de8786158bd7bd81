"""
Filewatch Scheduler.

Runs delayed and periodic callbacks on background threads.
Requires Python 3.11+.
"""

import threading
import time
from collections.abc import Callable
from typing import Any, Protocol

from filewatch.utils.logger import LoggerMixin


class ScheduledTask:
    """Handle to a scheduled callback."""

    def __init__(self) -> None:
        self._cancelled = threading.Event()
        self._timer: threading.Timer | None = None
        self._on_cancel: Callable[[], Any] | None = None

    def cancel(self) -> None:
        """Prevent any further run of the callback."""
        self._cancelled.set()
        if self._timer is not None:
            self._timer.cancel()
        if self._on_cancel is not None:
            self._on_cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _wait(self, seconds: float) -> bool:
        """Sleep until the deadline or cancellation. True means cancelled."""
        return self._cancelled.wait(seconds)


class Scheduler(Protocol):
    """Scheduling capability consumed by the watchers."""

    def schedule_once(self, callback: Callable[[], Any], delay_ms: int) -> ScheduledTask: ...

    def schedule_repeating(
        self,
        callback: Callable[[], Any],
        initial_delay_ms: int,
        period_ms: int,
    ) -> ScheduledTask: ...

    def cancel_all(self) -> None: ...


class ThreadScheduler(LoggerMixin):
    """
    Thread based scheduler.

    One-shot callbacks run on daemon threading.Timer threads, repeating
    callbacks on a dedicated daemon thread at a fixed rate. Once
    cancel_all() has been called the scheduler is shut down for good and
    new callbacks are dropped.
    """

    def __init__(self, name: str = "filewatch") -> None:
        """
        Initialize the scheduler.

        Args:
            name: Prefix for the names of the worker threads
        """
        self._name = name
        self._tasks: set[ScheduledTask] = set()
        self._lock = threading.Lock()
        self._shutdown = False
        self._counter = 0

    def schedule_once(self, callback: Callable[[], Any], delay_ms: int) -> ScheduledTask:
        """
        Run a callback once after a delay.

        Args:
            callback: Function to call
            delay_ms: Delay in milliseconds

        Returns:
            Handle that can cancel the callback before it runs
        """
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")

        task = ScheduledTask()

        def run() -> None:
            try:
                if not task.cancelled:
                    self._run_safely(callback)
            finally:
                self._forget(task)

        with self._lock:
            if self._shutdown:
                self.log.debug("schedule_after_shutdown", scheduler=self._name)
                task.cancel()
                return task
            self._counter += 1
            timer = threading.Timer(delay_ms / 1000.0, run)
            timer.name = f"{self._name}-once-{self._counter}"
            timer.daemon = True
            # Timer.cancel() has no effect once the timer fired, run()
            # checks the task flag for that window
            task._timer = timer
            task._on_cancel = lambda: self._forget(task)
            self._tasks.add(task)

        timer.start()
        return task

    def schedule_repeating(
        self,
        callback: Callable[[], Any],
        initial_delay_ms: int,
        period_ms: int,
    ) -> ScheduledTask:
        """
        Run a callback repeatedly at a fixed rate.

        Args:
            callback: Function to call
            initial_delay_ms: Delay before the first run in milliseconds
            period_ms: Time between the start of two runs in milliseconds

        Returns:
            Handle that stops the repetition
        """
        if initial_delay_ms < 0:
            raise ValueError("initial_delay_ms must be >= 0")
        if period_ms <= 0:
            raise ValueError("period_ms must be > 0")

        task = ScheduledTask()
        period = period_ms / 1000.0

        def loop() -> None:
            try:
                next_run = time.monotonic() + initial_delay_ms / 1000.0
                while not task._wait(max(next_run - time.monotonic(), 0.0)):
                    self._run_safely(callback)
                    next_run += period
                    # Skip missed runs instead of firing them back to back
                    now = time.monotonic()
                    if next_run < now:
                        next_run = now
            finally:
                self._forget(task)

        with self._lock:
            if self._shutdown:
                self.log.debug("schedule_after_shutdown", scheduler=self._name)
                task.cancel()
                return task
            self._counter += 1
            thread = threading.Thread(
                target=loop,
                name=f"{self._name}-repeat-{self._counter}",
                daemon=True,
            )
            self._tasks.add(task)

        thread.start()
        return task

    def cancel_all(self) -> None:
        """Cancel all outstanding callbacks and shut the scheduler down."""
        with self._lock:
            self._shutdown = True
            tasks = list(self._tasks)
            self._tasks.clear()

        for task in tasks:
            task.cancel()

        if tasks:
            self.log.debug("scheduler_cancelled", scheduler=self._name, tasks=len(tasks))

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    @property
    def pending_count(self) -> int:
        """Number of callbacks that are scheduled and not yet finished."""
        with self._lock:
            return len(self._tasks)

    def _forget(self, task: ScheduledTask) -> None:
        with self._lock:
            self._tasks.discard(task)

    def _run_safely(self, callback: Callable[[], Any]) -> None:
        try:
            callback()
        except Exception as e:
            self.log.error(
                "scheduled_callback_failed",
                scheduler=self._name,
                error=str(e),
                exc_info=True,
            )
