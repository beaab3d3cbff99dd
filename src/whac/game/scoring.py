from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from logging import Logger

    from .storage import BestScoreStore


class Scoreboard:
    """Running score (never negative) & the best score it is compared against."""

    score: int
    best: int

    _log: Logger
    _store: BestScoreStore

    def __init__(self, store: BestScoreStore) -> None:
        self._log = logging.getLogger("Scoreboard")
        self._store = store
        self.score = 0
        self.best = self._load_best()

    def reset(self) -> None:
        self.score = 0

    def apply(self, delta: int) -> int:
        self.score = max(0, self.score + delta)
        return self.score

    def finalize(self) -> bool:
        """Persist the score as new best if it beats the stored one.

        Returns:
            True if a new best score was set
        """
        if self.score <= self.best:
            return False

        self._log.info("New best score: [bold bright_green]%d[/] (was %d)", self.score, self.best)
        self.best = self.score
        try:
            self._store.set(self.score)
        except Exception as e:  # noqa: BLE001
            self._log.warning("[IGNORING] Failed to save best score %d: %s", self.score, e)
        return True

    def _load_best(self) -> int:
        try:
            best = self._store.get()
        except Exception as e:  # noqa: BLE001
            self._log.warning("[IGNORING] Failed to load best score, using 0: %s", e)
            return 0
        return max(0, best)
