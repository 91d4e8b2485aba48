"""Monotonic deadlines for the run and per-item timeout scopes."""

from __future__ import annotations

from collections.abc import Callable
import time as time_module

ClockFn = Callable[[], float]


class Deadline:
    """A point in monotonic time; `None` seconds means unbounded."""

    def __init__(self, seconds: float | None, *, clock: ClockFn | None = None) -> None:
        if seconds is not None and seconds < 0:
            raise ValueError("Deadline seconds must be >= 0.")
        self._clock = clock or time_module.monotonic
        self._expires_at = None if seconds is None else self._clock() + seconds

    @property
    def clock(self) -> ClockFn:
        return self._clock

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def child(self, seconds: float | None) -> Deadline:
        """Return a deadline that expires at the earlier of `seconds` and this one."""
        remaining = self.remaining()
        if seconds is None:
            bound = remaining
        elif remaining is None:
            bound = seconds
        else:
            bound = min(seconds, remaining)
        return Deadline(bound, clock=self._clock)

    def bound_ms(self, timeout_ms: int) -> int:
        """Clamp an operation timeout so it cannot outlive this deadline."""
        remaining = self.remaining()
        if remaining is None:
            return timeout_ms
        return max(1, min(timeout_ms, int(remaining * 1000)))


def unbounded() -> Deadline:
    return Deadline(None)
