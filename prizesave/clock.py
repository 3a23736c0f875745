"""Injectable time sources.

Period and credit arithmetic read time only through a clock object so that
tests can move time explicitly.
"""

from __future__ import annotations

import time
from typing import Optional


class Clock:
    """Interface for anything that can report the current UNIX time."""

    def now(self) -> int:
        raise NotImplementedError


class SystemClock(Clock):
    """Wall-clock time in whole seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, start: Optional[int] = None) -> None:
        self._now = int(time.time()) if start is None else int(start)

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        self._now = int(timestamp)

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("cannot move a clock backwards")
        self._now += int(seconds)
        return self._now


__all__ = ["Clock", "SystemClock", "ManualClock"]
