from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .audio import AudioEvent
from .commands import ClearFeedback
from .constants import FEEDBACK_MS
from .types import Occupant, Phase

if TYPE_CHECKING:
    from logging import Logger

    from .audio import AudioChannel
    from .scoring import Scoreboard
    from .slots import SlotStore
    from .timers import EpochTimers


@dataclass(frozen=True, slots=True)
class Hit:
    slot_id: int
    occupant: Occupant
    delta: int
    score: int


class HitResolver:
    """Turns player taps into score changes & transient hit feedback."""

    _log: Logger
    _timers: EpochTimers
    _store: SlotStore
    _scoreboard: Scoreboard
    _audio: AudioChannel

    def __init__(self, timers: EpochTimers, store: SlotStore, scoreboard: Scoreboard, audio: AudioChannel) -> None:
        self._log = logging.getLogger("Hits")
        self._timers = timers
        self._store = store
        self._scoreboard = scoreboard
        self._audio = audio

    def resolve(self, slot_id: int, phase: Phase) -> Hit | None:
        """Resolve a tap on `slot_id`.

        Taps outside an active session, on unknown slots or on slots with
        nothing showing are ignored.

        Returns:
            The hit, or None if the tap was ignored
        """
        if phase is not Phase.ACTIVE:
            return None

        slot = self._store.get(slot_id)
        if slot is None or not slot.visible or slot.occupant is None:
            return None

        self._audio.notify(AudioEvent("tap_hit"))

        delta = 1 if slot.occupant is Occupant.FAVORABLE else -1
        score = self._scoreboard.apply(delta)

        cleared = self._store.update(slot_id, occupant=None, visible=False, feedback=True)
        self._timers.call_later(FEEDBACK_MS, ClearFeedback(slot_id, cleared.generation))

        self._log.debug("Hit slot %d ([bold]%s[/], %+d) -> score %d", slot_id, slot.occupant, delta, score)
        return Hit(slot_id=slot_id, occupant=slot.occupant, delta=delta, score=score)

    def clear_feedback(self, cmd: ClearFeedback) -> bool:
        """Hide hit feedback if the slot still shows it for the same hit."""
        slot = self._store[cmd.slot_id]
        if slot.generation != cmd.generation or not slot.feedback:
            return False

        self._store.update(cmd.slot_id, feedback=False)
        return True
