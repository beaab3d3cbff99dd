"""
Spawn scheduler.

Each spawn tick picks a random slot, fills it with a randomly typed occupant
for the current tier's visible duration, then schedules the next tick. The
tier is looked up fresh on every tick from the clock's elapsed time.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from .commands import ClearSpawn, SpawnTick
from .constants import FIRST_SPAWN_DELAY_MS, MIN_VISIBLE_MS, SPAWN_JITTER_MS, tier_for
from .types import Occupant

if TYPE_CHECKING:
    from logging import Logger

    from .clock import Clock
    from .slots import Slot, SlotStore
    from .timers import EpochTimers, TimerHandle
    from .types import RandomSource


class SpawnScheduler:
    _log: Logger
    _timers: EpochTimers
    _store: SlotStore
    _clock: Clock
    _rng: RandomSource
    _next: TimerHandle | None

    def __init__(
        self,
        timers: EpochTimers,
        store: SlotStore,
        clock: Clock,
        rng: RandomSource | None = None,
    ) -> None:
        self._log = logging.getLogger("Spawner")
        self._timers = timers
        self._store = store
        self._clock = clock
        self._rng = rng if rng is not None else random.Random()  # noqa: S311
        self._next = None

    @property
    def running(self) -> bool:
        return self._next is not None

    def start(self) -> None:
        if self.running:
            return
        self._next = self._timers.call_later(FIRST_SPAWN_DELAY_MS, SpawnTick())

    def stop(self) -> None:
        """Cancel the next spawn tick.

        Pending clears belong to the session's timer group & are cancelled
        with it.
        """
        self._timers.cancel(self._next)
        self._next = None

    def spawn(self) -> Slot:
        """Run one spawn tick.

        Returns:
            The slot as written by this tick
        """
        tier = tier_for(self._clock.elapsed)

        slot_id = self._rng.randrange(len(self._store))
        unfavorable = self._rng.random() < tier.unfavorable_p
        occupant = Occupant.UNFAVORABLE if unfavorable else Occupant.FAVORABLE

        # Write first: the slot must be hittable before its clear can fire
        slot = self._store.update(slot_id, occupant=occupant, visible=True, feedback=False)

        visible_ms = max(tier.visible_ms, MIN_VISIBLE_MS)
        self._timers.call_later(visible_ms, ClearSpawn(slot_id, occupant, slot.generation))

        delay_ms = tier.spawn_delay_ms + self._rng.random() * SPAWN_JITTER_MS
        self._next = self._timers.call_later(delay_ms, SpawnTick())

        self._log.debug(
            "Slot %d <- [bold]%s[/] for %dms (next in %dms, e=%ds)",
            slot_id,
            occupant,
            visible_ms,
            delay_ms,
            self._clock.elapsed,
        )
        return slot

    def clear(self, cmd: ClearSpawn) -> bool:
        """Hide the occupant placed by one spawn tick.

        Returns:
            True if the slot was cleared, False if it changed since the spawn
        """
        slot = self._store[cmd.slot_id]
        if slot.generation != cmd.generation or slot.occupant != cmd.occupant:
            self._log.debug("Stale clear for slot %d ignored (gen %d != %d)", cmd.slot_id, slot.generation, cmd.generation)
            return False

        self._store.update(cmd.slot_id, occupant=None, visible=False)
        return True
