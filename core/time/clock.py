"""
TIR Core Time — Injectable Clock
==================================
Registries never read wall-clock time themselves. Every command carries
its own issued_at, taken from a Clock owned by the caller layer, so the
ledger alone is enough to reproduce state.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Injectable time source."""

    def now_utc(self) -> datetime:
        ...  # pragma: no cover


class SystemClock:
    """Real system time, always UTC."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Test clock frozen at one instant until advanced.

    Usage:
        clock = FixedClock(datetime(2026, 1, 1, tzinfo=timezone.utc))
        clock.advance(seconds=30)
    """

    def __init__(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._current = fixed_dt

    def now_utc(self) -> datetime:
        return self._current

    def advance(self, seconds: float) -> None:
        self._current = self._current + timedelta(seconds=seconds)


class SteppingClock(FixedClock):
    """Advances by a fixed step after every read. Gives each command a distinct issued_at."""

    def __init__(self, start: datetime, step_seconds: float = 1.0) -> None:
        super().__init__(start)
        if step_seconds <= 0:
            raise ValueError("step_seconds must be > 0.")
        self._step = step_seconds

    def now_utc(self) -> datetime:
        current = self._current
        self.advance(self._step)
        return current


_default_clock: Clock = SystemClock()


def get_default_clock() -> Clock:
    return _default_clock


def set_default_clock(clock: Clock) -> None:
    """Override the process default (tests and scripts only)."""
    global _default_clock
    _default_clock = clock
