from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable
    from logging import Logger

    from .commands import TimerCommand

    type CommandSink = Callable[[TimerCommand, int], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Loop(Protocol):
    """Subset of `asyncio.AbstractEventLoop` the session needs."""

    def call_later(self, delay: float, callback: Callable[..., object], /, *args: object) -> TimerHandle: ...

    def call_soon_threadsafe(self, callback: Callable[..., object], /, *args: object) -> object: ...


class EpochTimers:
    """
    Pending timer callbacks owned by one session.

    Every timer delivers a command to `sink` together with the epoch it was
    scheduled in. `cancel_all` cancels every pending handle and starts a new
    epoch, so a command that slipped through (already queued) can still be
    recognised as stale by the receiver.
    """

    epoch: int

    _log: Logger
    _loop: Loop
    _sink: CommandSink
    _pending: set[TimerHandle]

    def __init__(self, loop: Loop, sink: CommandSink) -> None:
        self.epoch = 0

        self._log = logging.getLogger("Timers")
        self._loop = loop
        self._sink = sink
        self._pending = set()

    def __len__(self) -> int:
        return len(self._pending)

    def call_later(self, delay_ms: float, command: TimerCommand) -> TimerHandle:
        """Deliver `command` to the sink after `delay_ms` milliseconds."""

        epoch = self.epoch

        def fire() -> None:
            self._pending.discard(handle)
            self._sink(command, epoch)

        handle = self._loop.call_later(max(0.0, delay_ms) / 1000, fire)
        self._pending.add(handle)
        return handle

    def cancel(self, handle: TimerHandle | None) -> None:
        if handle is None:
            return
        handle.cancel()
        self._pending.discard(handle)

    def cancel_all(self) -> int:
        """Cancel every pending timer & advance the epoch.

        Returns:
            Number of timers cancelled
        """
        n = len(self._pending)
        for handle in self._pending:
            handle.cancel()
        self._pending.clear()
        self.epoch += 1

        if n:
            self._log.debug("Cancelled [bright_yellow]%d[/] pending timer(s), epoch now %d", n, self.epoch)
        return n
