"""Commands processed one at a time by `SessionController`."""

from __future__ import annotations

from dataclasses import dataclass

from .types import Occupant


@dataclass(frozen=True, slots=True)
class Start:
    pass


@dataclass(frozen=True, slots=True)
class Restart:
    pass


@dataclass(frozen=True, slots=True)
class Tap:
    slot_id: int


@dataclass(frozen=True, slots=True)
class ToggleMute:
    pass


# ==================== Timer Commands ====================


@dataclass(frozen=True, slots=True)
class ClockTick:
    pass


@dataclass(frozen=True, slots=True)
class SpawnTick:
    pass


@dataclass(frozen=True, slots=True)
class ClearSpawn:
    slot_id: int
    occupant: Occupant
    generation: int


@dataclass(frozen=True, slots=True)
class ClearFeedback:
    slot_id: int
    generation: int


type PlayerCommand = Start | Restart | Tap | ToggleMute
type TimerCommand = ClockTick | SpawnTick | ClearSpawn | ClearFeedback
type Command = PlayerCommand | TimerCommand
