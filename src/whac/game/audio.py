"""
Audio cues.

The session never plays sound itself; it hands `AudioEvent`s to an
`AudioChannel`, which applies the mute toggle and forwards to every sink.
Sinks are fire-and-forget: a failing sink is logged & skipped.

The cue data (boop sweep, melody phrase) is exposed so a sink with a real
synthesizer can render it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable
    from logging import Logger

    from .types import AudioKind


@dataclass(frozen=True, slots=True)
class AudioEvent:
    kind: AudioKind
    tempo: float | None = None  # Set for melody_start & tempo_change


@dataclass(frozen=True, slots=True)
class Note:
    freq: int  # Hz
    duration: float  # Secs


@dataclass(frozen=True, slots=True)
class Sweep:
    start_freq: int
    end_freq: int
    duration: float


BOOP: Final = Sweep(start_freq=800, end_freq=400, duration=0.1)

BEAT_SECONDS: Final = 0.4

# Jingle Bells opening phrase: (freq, length in beats)
_PHRASE: Final = (
    (330, 1.0),  # E
    (330, 1.0),  # E
    (330, 1.5),  # E
    (330, 1.0),  # E
    (330, 1.0),  # E
    (330, 1.5),  # E
    (330, 1.0),  # E
    (392, 1.0),  # G
    (262, 1.0),  # C
    (294, 1.0),  # D
    (330, 2.0),  # E
)


def melody(tempo: float) -> list[Note]:
    """Return the melody phrase at the given tempo (1 = normal speed)."""
    beat = BEAT_SECONDS / tempo
    return [Note(freq=freq, duration=beat * beats) for freq, beats in _PHRASE]


class AudioSink(Protocol):
    def notify(self, event: AudioEvent) -> None: ...


class LogAudioSink:
    """Renders cues as log lines (for headless servers)."""

    _log: Logger

    def __init__(self) -> None:
        self._log = logging.getLogger("Audio")

    def notify(self, event: AudioEvent) -> None:
        match event.kind:
            case "tap_hit":
                self._log.debug("[bright_white on grey30][BOOP][/] %d->%dHz", BOOP.start_freq, BOOP.end_freq)
            case "melody_start" | "tempo_change":
                tempo = event.tempo or 1.0
                notes = melody(tempo)
                total = sum(n.duration for n in notes)
                self._log.info(
                    "[bright_white on grey30][MELODY][/] x%.1f (%d notes, %.2fs)%s",
                    tempo,
                    len(notes),
                    total,
                    " [bright_yellow]tempo up[/]" if event.kind == "tempo_change" else "",
                )


class AudioChannel:
    """Mute toggle in front of a set of sinks."""

    muted: bool

    _log: Logger
    _sinks: list[AudioSink]

    def __init__(self, sinks: Iterable[AudioSink] = (), *, muted: bool = False) -> None:
        self.muted = muted

        self._log = logging.getLogger("Audio")
        self._sinks = list(sinks)

    def add_sink(self, sink: AudioSink) -> None:
        self._sinks.append(sink)

    def remove_sink(self, sink: AudioSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    def toggle_mute(self) -> bool:
        self.muted = not self.muted
        self._log.info("Audio %s", "[bright_yellow]muted[/]" if self.muted else "[bright_green]unmuted[/]")
        return self.muted

    def notify(self, event: AudioEvent) -> None:
        if self.muted:
            return

        for sink in self._sinks:
            try:
                sink.notify(event)
            except Exception as e:  # noqa: BLE001
                self._log.warning("[IGNORING] Audio sink %s failed on %s: %s", type(sink).__name__, event.kind, e)
