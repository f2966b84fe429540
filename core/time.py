"""
core/time.py - Clock helpers.

Monotonic time drives cache expiry; wall-clock time stamps results.
"""

import time
from datetime import datetime, timezone
from typing import Callable

# Injectable clock type: returns seconds
Clock = Callable[[], float]


def monotonic() -> float:
    """Monotonic seconds, immune to wall-clock jumps."""
    return time.monotonic()


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def is_fresh(stored_at: float, ttl_seconds: float, current_time: float) -> bool:
    """
    Check whether an entry stored at stored_at is still live.

    Live means strictly younger than the TTL.
    """
    return (current_time - stored_at) < ttl_seconds


class ManualClock:
    """
    Settable clock for deterministic TTL tests and replays.

    Usage:
        clock = ManualClock()
        cache = TTLCache(clock=clock)
        clock.advance(31)
    """

    def __init__(self, start: float = 0.0):
        self._now = start

    def __call__(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds
