"""
Filewatch Test Configuration.

Pytest fixtures.
Requires Python 3.11+.
"""

from pathlib import Path
from unittest.mock import Mock

import pytest

from tests.fakes import FakeScheduler, FakeSubscriber, set_mtime


@pytest.fixture
def listener() -> Mock:
    """Listener double recording on_changed() calls."""
    return Mock(spec=["on_changed"])


@pytest.fixture
def scheduler() -> FakeScheduler:
    """Manual scheduler."""
    return FakeScheduler()


@pytest.fixture
def subscriber() -> FakeSubscriber:
    """Manual directory subscriber."""
    return FakeSubscriber()


@pytest.fixture
def existing_file(tmp_path: Path) -> Path:
    """A file with a known modification time."""
    file_path = tmp_path / "watched.txt"
    set_mtime(file_path, 1_000_000_000_000_000_000)
    return file_path


@pytest.fixture
def missing_file(tmp_path: Path) -> Path:
    """Path of a file that does not exist yet."""
    return tmp_path / "not_there_yet.txt"
