from __future__ import annotations

from typing import TYPE_CHECKING

from .commands import ClockTick
from .constants import SESSION_SECONDS, TICK_MS

if TYPE_CHECKING:
    from .timers import EpochTimers, TimerHandle


class Clock:
    """
    Countdown from `total_seconds` to 0, one decrement per tick.

    The clock only arms timers; the decrement happens when the session
    processes the resulting `ClockTick` and calls `tick()`.
    """

    total_seconds: int
    remaining: int

    _timers: EpochTimers
    _handle: TimerHandle | None

    def __init__(self, timers: EpochTimers, *, total_seconds: int = SESSION_SECONDS) -> None:
        self.total_seconds = total_seconds
        self.remaining = total_seconds

        self._timers = timers
        self._handle = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    @property
    def elapsed(self) -> int:
        return self.total_seconds - self.remaining

    def reset(self) -> None:
        self.stop()
        self.remaining = self.total_seconds

    def start(self) -> None:
        if self.running or self.remaining <= 0:
            return
        self._arm()

    def stop(self) -> None:
        """Cancel the pending tick (safe to call when already stopped)."""
        self._timers.cancel(self._handle)
        self._handle = None

    def tick(self) -> int:
        """Consume one tick & re-arm unless the countdown is over.

        Returns:
            New remaining seconds (never negative)
        """
        self._handle = None
        self.remaining = max(0, self.remaining - 1)

        if self.remaining > 0:
            self._arm()

        return self.remaining

    def _arm(self) -> None:
        self._handle = self._timers.call_later(TICK_MS, ClockTick())
