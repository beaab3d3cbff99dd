from __future__ import annotations

from enum import StrEnum
from typing import Literal, Protocol


class Occupant(StrEnum):
    FAVORABLE = "grinch"  # +1 when hit
    UNFAVORABLE = "santa"  # -1 when hit


class Phase(StrEnum):
    IDLE = "idle"
    ACTIVE = "active"
    FINISHED = "finished"


type AudioKind = Literal["tap_hit", "melody_start", "tempo_change"]


class RandomSource(Protocol):
    """Subset of `random.Random` used by the spawner."""

    def randrange(self, stop: int, /) -> int: ...

    def random(self) -> float: ...
