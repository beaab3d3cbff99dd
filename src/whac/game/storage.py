"""Best score persistence."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Final, Protocol

from pydantic import BaseModel, Field, ValidationError

BEST_SCORE_FILE: Final = "best_score.json"

_log = logging.getLogger("BestScore")


class BestScoreStore(Protocol):
    def get(self) -> int: ...

    def set(self, score: int) -> None: ...


class BestScore(BaseModel):
    """On-disk best score record."""

    score: int = Field(ge=0)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class JsonBestScoreStore:
    """
    Best score kept in a small JSON file.

    Never raises: an unreadable or invalid file reads as 0 and a failed write
    is logged & dropped, since losing a best score must not stop a game.
    """

    path: Path

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def get(self) -> int:
        try:
            if not self.path.exists():
                return 0
            record = BestScore.model_validate_json(self.path.read_text())
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            _log.warning("Unreadable best score in %s, using 0: %s", self.path, e)
            return 0

        return record.score

    def set(self, score: int) -> None:
        try:
            record = BestScore(score=score)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(record.model_dump_json(indent=2))
        except (OSError, ValidationError) as e:
            _log.error("Failed to save best score %d to %s: %s", score, self.path, e)
            return

        _log.debug("Saved best score %d to %s", score, self.path)


class MemoryBestScoreStore:
    """Best score held in memory only (nothing survives the process)."""

    score: int

    def __init__(self, score: int = 0) -> None:
        self.score = score

    def get(self) -> int:
        return self.score

    def set(self, score: int) -> None:
        self.score = score
