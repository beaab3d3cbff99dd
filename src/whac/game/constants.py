"""Timing & difficulty constants for a game session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

SESSION_SECONDS: Final = 60
TICK_MS: Final = 1_000

DEFAULT_SLOT_COUNT: Final = 5
MAX_SLOT_COUNT: Final = 9  # Slot ids must fit a single ASCII digit command

FIRST_SPAWN_DELAY_MS: Final = 800
SPAWN_JITTER_MS: Final = 200
MIN_VISIBLE_MS: Final = 250
FEEDBACK_MS: Final = 600


@dataclass(frozen=True, slots=True)
class Tier:
    """One step of the difficulty ramp."""

    min_elapsed: int  # Secs since session start at which this tier begins
    spawn_delay_ms: int
    visible_ms: int
    unfavorable_p: float
    tempo: float


TIERS: Final = (
    Tier(min_elapsed=0, spawn_delay_ms=1_500, visible_ms=1_000, unfavorable_p=0.30, tempo=1.0),
    Tier(min_elapsed=20, spawn_delay_ms=900, visible_ms=550, unfavorable_p=0.20, tempo=1.5),
    Tier(min_elapsed=40, spawn_delay_ms=500, visible_ms=350, unfavorable_p=0.15, tempo=2.0),
)


def tier_for(elapsed: int) -> Tier:
    """Return the tier in force `elapsed` seconds into a session."""

    current = TIERS[0]
    for tier in TIERS:
        if elapsed >= tier.min_elapsed:
            current = tier
    return current
