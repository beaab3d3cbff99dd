"""
Session controller.

Owns every piece of a game session (slots, clock, spawner, hit resolver,
scoreboard, timers) and runs them from a single FIFO of commands:

    player input  -> dispatch(Start | Restart | Tap | ToggleMute)
    timer expiry  -> EpochTimers -> (ClockTick | SpawnTick | Clear*, epoch)

Commands are handled strictly one at a time on the event loop thread. Timer
commands carry the epoch they were scheduled in; every start, restart &
finish opens a new epoch, so no callback from an earlier epoch can touch the
current session. After each command an immutable `Snapshot` is published to
observers if anything changed.

Phases:
    IDLE     -- start -->    ACTIVE
    ACTIVE   -- restart -->  ACTIVE    (full reset)
    ACTIVE   -- clock 0 -->  FINISHED  (best score check)
    FINISHED -- start -->    ACTIVE
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from .audio import AudioChannel, AudioEvent
from .clock import Clock
from .commands import (
    ClearFeedback,
    ClearSpawn,
    ClockTick,
    Restart,
    SpawnTick,
    Start,
    Tap,
    ToggleMute,
)
from .constants import DEFAULT_SLOT_COUNT, SESSION_SECONDS, TIERS, tier_for
from .hits import HitResolver
from .scoring import Scoreboard
from .slots import Slot, SlotStore
from .spawner import SpawnScheduler
from .timers import EpochTimers
from .types import Phase

if TYPE_CHECKING:
    from collections.abc import Callable
    from logging import Logger

    from .commands import Command, TimerCommand
    from .storage import BestScoreStore
    from .timers import Loop
    from .types import RandomSource

    type Observer = Callable[[Snapshot], None]


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Read-only view of a session at one instant."""

    phase: Phase
    run: int  # Sessions started so far (a restart counts as a new run)
    score: int
    best_score: int
    remaining_seconds: int
    tempo: float
    muted: bool
    slots: tuple[Slot, ...]

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class SessionController:
    phase: Phase
    tempo: float
    runs: int

    _log: Logger
    _timers: EpochTimers
    _slots: SlotStore
    _scoreboard: Scoreboard
    _audio: AudioChannel
    _clock: Clock
    _spawner: SpawnScheduler
    _hits: HitResolver
    _queue: deque[tuple[Command, int | None]]
    _draining: bool
    _observers: list[Observer]
    _last: Snapshot

    def __init__(
        self,
        loop: Loop,
        *,
        store: BestScoreStore,
        audio: AudioChannel | None = None,
        slot_count: int = DEFAULT_SLOT_COUNT,
        total_seconds: int = SESSION_SECONDS,
        rng: RandomSource | None = None,
    ) -> None:
        self.phase = Phase.IDLE
        self.tempo = TIERS[0].tempo
        self.runs = 0

        self._log = logging.getLogger("Session")
        self._timers = EpochTimers(loop, self._enqueue_timer_command)
        self._slots = SlotStore(slot_count)
        self._scoreboard = Scoreboard(store)
        self._audio = audio if audio is not None else AudioChannel()
        self._clock = Clock(self._timers, total_seconds=total_seconds)
        self._spawner = SpawnScheduler(self._timers, self._slots, self._clock, rng)
        self._hits = HitResolver(self._timers, self._slots, self._scoreboard, self._audio)

        self._queue = deque()
        self._draining = False
        self._observers = []
        self._last = self.snapshot()

    # ==================== Public API ====================

    @property
    def audio(self) -> AudioChannel:
        return self._audio

    @property
    def slot_count(self) -> int:
        return len(self._slots)

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            phase=self.phase,
            run=self.runs,
            score=self._scoreboard.score,
            best_score=self._scoreboard.best,
            remaining_seconds=self._clock.remaining,
            tempo=self.tempo,
            muted=self._audio.muted,
            slots=self._slots.snapshot(),
        )

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Call `observer` with a new snapshot after every state change.

        Returns:
            Function that removes the observer
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def dispatch(self, command: Command) -> None:
        """Queue a command & process the queue (unless already processing)."""
        self._queue.append((command, None))
        self._drain()

    def start(self) -> None:
        self.dispatch(Start())

    def restart(self) -> None:
        self.dispatch(Restart())

    def tap(self, slot_id: int) -> None:
        self.dispatch(Tap(slot_id))

    def toggle_mute(self) -> None:
        self.dispatch(ToggleMute())

    def shutdown(self) -> None:
        """Cancel everything still scheduled (e.g. on server exit)."""
        self._timers.cancel_all()
        self._clock.stop()
        self._spawner.stop()
        self._queue.clear()

    # ==================== Command Processing ====================

    def _enqueue_timer_command(self, command: TimerCommand, epoch: int) -> None:
        self._queue.append((command, epoch))
        self._drain()

    def _drain(self) -> None:
        if self._draining:
            return

        self._draining = True
        try:
            while self._queue:
                command, epoch = self._queue.popleft()
                if epoch is not None and epoch != self._timers.epoch:
                    self._log.debug("Dropping %s from epoch %d", type(command).__name__, epoch)
                    continue

                self._handle(command)
                self._publish()
        finally:
            self._draining = False

    def _handle(self, command: Command) -> None:
        match command:
            case Start():
                if self.phase is Phase.ACTIVE:
                    self._log.debug("Start ignored, session already active")
                    return
                self._begin()

            case Restart():
                if self.phase is not Phase.ACTIVE:
                    self._log.debug("Restart ignored in phase %s", self.phase)
                    return
                self._log.info("Restarting session")
                self._begin()

            case Tap(slot_id=slot_id):
                self._hits.resolve(slot_id, self.phase)

            case ToggleMute():
                self._audio.toggle_mute()

            case ClockTick():
                self._on_clock_tick()

            case SpawnTick():
                self._spawner.spawn()

            case ClearSpawn():
                self._spawner.clear(command)

            case ClearFeedback():
                self._hits.clear_feedback(command)

    def _begin(self) -> None:
        self._timers.cancel_all()
        self._clock.reset()
        self._spawner.stop()
        self._slots.reset()
        self._scoreboard.reset()
        self.tempo = TIERS[0].tempo
        self.phase = Phase.ACTIVE
        self.runs += 1

        self._clock.start()
        self._spawner.start()
        self._audio.notify(AudioEvent("melody_start", self.tempo))

        self._log.info(
            "Session started: [bold]%d[/] slots, %ds, best [bright_green]%d[/]",
            len(self._slots),
            self._clock.total_seconds,
            self._scoreboard.best,
        )

    def _on_clock_tick(self) -> None:
        remaining = self._clock.tick()

        tempo = tier_for(self._clock.elapsed).tempo
        if tempo > self.tempo:
            self.tempo = tempo
            self._log.info("Tempo up: [bright_yellow]x%.1f[/] at %ds", tempo, self._clock.elapsed)
            self._audio.notify(AudioEvent("tempo_change", tempo))

        if remaining == 0:
            self._finish()

    def _finish(self) -> None:
        self._timers.cancel_all()
        self._clock.stop()
        self._spawner.stop()
        self.phase = Phase.FINISHED

        new_best = self._scoreboard.finalize()
        self._log.info(
            "Session finished: score [bold]%d[/], best [bright_green]%d[/]%s",
            self._scoreboard.score,
            self._scoreboard.best,
            " (new best!)" if new_best else "",
        )

    def _publish(self) -> None:
        snap = self.snapshot()
        if snap == self._last:
            return

        self._last = snap
        for observer in list(self._observers):
            try:
                observer(snap)
            except Exception:
                self._log.exception("Snapshot observer %r failed", observer)
