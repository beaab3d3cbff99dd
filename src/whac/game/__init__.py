from typing import Final

from .audio import AudioChannel, AudioEvent, AudioSink, LogAudioSink
from .commands import Restart, Start, Tap, ToggleMute
from .session import SessionController, Snapshot
from .slots import Slot
from .storage import BEST_SCORE_FILE, BestScoreStore, JsonBestScoreStore, MemoryBestScoreStore
from .types import Occupant, Phase

__all__: Final = [
    "BEST_SCORE_FILE",
    "AudioChannel",
    "AudioEvent",
    "AudioSink",
    "BestScoreStore",
    "JsonBestScoreStore",
    "LogAudioSink",
    "MemoryBestScoreStore",
    "Occupant",
    "Phase",
    "Restart",
    "SessionController",
    "Slot",
    "Snapshot",
    "Start",
    "Tap",
    "ToggleMute",
]
