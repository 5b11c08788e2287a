"""
Clock abstraction for pacing, retry delays and timestamps.

Every sleep in the pipeline (retry delays, pacing between requests and
between batch commits) goes through a ``Clock`` so that tests can run on
virtual time instead of waiting on the wall clock.
"""

import asyncio
import time
from datetime import datetime, timedelta, timezone
from typing import List, Optional


class Clock:
    """Real clock backed by asyncio and the system time."""

    async def sleep(self, seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)

    def monotonic(self) -> float:
        return time.monotonic()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class VirtualClock(Clock):
    """
    Deterministic clock for tests and simulations.

    ``sleep`` returns immediately after advancing virtual time and records
    the requested duration in ``sleeps``.
    """

    def __init__(self, start: Optional[datetime] = None):
        self._start = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._elapsed = 0.0
        self.sleeps: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)
        # Still yield to the event loop like a real sleep would
        await asyncio.sleep(0)

    def advance(self, seconds: float) -> None:
        if seconds > 0:
            self._elapsed += seconds

    def monotonic(self) -> float:
        return self._elapsed

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    @property
    def total_slept(self) -> float:
        return sum(self.sleeps)
