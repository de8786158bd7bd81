"""
Filewatch Time Source.

Requires Python 3.11+.
"""

import time
from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    """Source of comparable instants. Replaced by fakes in tests."""

    def now(self) -> int: ...


class SystemClock:
    """Wall-clock time in milliseconds."""

    def now(self) -> int:
        return int(time.time() * 1000)

    def today(self) -> datetime:
        return datetime.now()
