"""
Tests for Listener Adapters and the Watcher Factory.

Requires Python 3.11+.
"""

import asyncio
import time
from pathlib import Path
from unittest.mock import Mock

import pytest

from filewatch.errors import WatcherConfigurationError
from filewatch.watcher.base import CallbackListener, FileChangeListener, as_listener
from filewatch.watcher.clock import SystemClock
from filewatch.watcher.factory import WatchStrategy, create_watcher
from filewatch.watcher.native import NativeFileWatcher
from filewatch.watcher.polling import PollingFileWatcher
from tests.fakes import FakeScheduler, FakeSubscriber


class TestListeners:
    """Test cases for listener coercion."""

    def test_listener_object_is_kept(self, listener: Mock):
        """Test objects with on_changed are used as they are."""
        assert as_listener(listener) is listener

    def test_callable_is_wrapped(self):
        """Test a plain function becomes a listener."""
        calls: list[str] = []
        wrapped = as_listener(lambda: calls.append("changed"))

        assert isinstance(wrapped, CallbackListener)
        assert isinstance(wrapped, FileChangeListener)
        wrapped.on_changed()
        assert calls == ["changed"]

    def test_coroutine_without_loop_runs(self):
        """Test a coroutine callback runs to completion without a loop."""
        calls: list[str] = []

        async def on_change() -> None:
            calls.append("changed")

        as_listener(on_change).on_changed()

        assert calls == ["changed"]

    def test_coroutine_with_loop_is_scheduled(self):
        """Test a coroutine callback is handed to the given loop."""
        calls: list[str] = []

        async def on_change() -> None:
            calls.append("changed")

        loop = asyncio.new_event_loop()
        try:
            listener = CallbackListener(on_change)
            listener.set_event_loop(loop)
            listener.on_changed()
            loop.run_until_complete(asyncio.sleep(0.05))
        finally:
            loop.close()

        assert calls == ["changed"]

    @pytest.mark.parametrize("value", [None, 42, "on_changed"])
    def test_invalid_listener(self, value: object):
        """Test anything else is a configuration error."""
        with pytest.raises(WatcherConfigurationError):
            as_listener(value)


class TestCreateWatcher:
    """Test cases for strategy selection."""

    def test_poll_strategy(self, existing_file: Path, listener: Mock, scheduler: FakeScheduler):
        """Test the poll strategy builds a polling watcher."""
        watcher = create_watcher(existing_file, listener, "poll", poll_interval_ms=5, scheduler=scheduler)

        assert isinstance(watcher, PollingFileWatcher)
        assert watcher.poll_interval_ms == 5
        watcher.stop()

    def test_event_strategy_is_default(
        self, existing_file: Path, listener: Mock, scheduler: FakeScheduler, subscriber: FakeSubscriber
    ):
        """Test operating system events are used by default."""
        watcher = create_watcher(existing_file, listener, scheduler=scheduler, subscriber=subscriber)

        assert isinstance(watcher, NativeFileWatcher)
        assert subscriber.calls
        watcher.stop()

    def test_unknown_strategy(self, existing_file: Path, listener: Mock):
        """Test an unknown strategy is rejected."""
        with pytest.raises(WatcherConfigurationError):
            create_watcher(existing_file, listener, "inotify")

    def test_strategy_values(self):
        """Test the strategy names."""
        assert WatchStrategy("poll") is WatchStrategy.POLL
        assert WatchStrategy("event") is WatchStrategy.EVENT


class TestSystemClock:
    """Test cases for the default time source."""

    def test_now_is_wall_clock_millis(self):
        """Test now() returns milliseconds since the epoch."""
        before = int(time.time() * 1000)
        now = SystemClock().now()
        after = int(time.time() * 1000)

        assert before <= now <= after

    def test_today(self):
        """Test today() returns the current date and time."""
        assert SystemClock().today().year >= 2024
