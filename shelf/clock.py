"""Time source for throttling and animation phases"""

import time


class Clock:
    """Monotonic seconds. Tests substitute ``ManualClock``."""

    def now(self) -> float:
        return time.monotonic()


class ManualClock(Clock):
    """Clock that only moves when told to"""

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        self._now += seconds
        return self._now
