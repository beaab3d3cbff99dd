"""
MQTT bridge for a game session.

Lets remote devices drive a session & follow it:

    MQTT whac/<device_id>/commands -> Bridge -> loop -> SessionController
    SessionController -> snapshots / audio cues -> Bridge -> MQTT

Protocol:
    - Single-byte commands: S (start), R (restart), M (mute toggle),
      0-9 (tap slot)
    - game_events: session_start, score, session_end
    - audio: tap_hit, melody_start, tempo_change (with melody notes)

Commands arrive on the paho network thread and are handed to the event loop
with `call_soon_threadsafe`; the session itself is only touched from the loop.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar, Protocol

from .game import AudioEvent, Phase, Restart, Start, Tap, ToggleMute
from .game.audio import BOOP, melody

if TYPE_CHECKING:
    from collections.abc import Callable
    from logging import Logger

    from .game import SessionController, Snapshot
    from .game.commands import PlayerCommand
    from .game.timers import Loop
    from .types import DevStatus


class EventPublisher(Protocol):
    def publish_state(self, status: DevStatus) -> None: ...

    def publish_event(self, event: dict[str, Any], *, topic: Any = ...) -> None: ...  # noqa: ANN401


class Bridge:
    # Format: {byte: description} for logging/validation
    BOARD_COMMANDS: ClassVar[dict[bytes, str]] = {
        b"S": "start session",
        b"R": "restart session",
        b"M": "mute toggle",
        **{str(i).encode(): f"tap slot {i}" for i in range(10)},
    }

    _log: Logger
    _session: SessionController
    _loop: Loop
    _publisher: EventPublisher | None
    _unsubscribe: Callable[[], None] | None
    _last: Snapshot

    def __init__(self, session: SessionController, loop: Loop) -> None:
        self._log = logging.getLogger("Bridge")
        self._session = session
        self._loop = loop
        self._publisher = None
        self._unsubscribe = None
        self._last = session.snapshot()

    # ==================== Public API ====================

    def attach(self, publisher: EventPublisher) -> None:
        """Start forwarding session snapshots & audio cues to `publisher`."""

        self._publisher = publisher
        self._last = self._session.snapshot()
        self._unsubscribe = self._session.subscribe(self._on_snapshot)
        self._session.audio.add_sink(self)
        publisher.publish_state("online")

    def detach(self) -> None:
        if self._publisher is None:
            return

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._session.audio.remove_sink(self)
        self._publisher.publish_state("offline")
        self._publisher = None

    def handle_command(self, byte: bytes) -> None:
        """Handle MQTT command (callback from MqttClient, runs on the MQTT thread).

        Args:
            byte: Single-byte MQTT command
        """

        cmd = self._parse_command(byte)
        if cmd is None:
            self._log.warning("[MQTT -> Session] INVALID COMMAND: %r", byte)
            return

        self._log.info("[bright_white on grey30][MQTT -> Session][/] %r (%s)", byte, Bridge.BOARD_COMMANDS[byte])
        self._loop.call_soon_threadsafe(self._session.dispatch, cmd)

    # ==================== Session -> MQTT ====================

    def notify(self, event: AudioEvent) -> None:
        """Audio sink: forward cue to remote speakers."""

        if self._publisher is None:
            return

        pload: dict[str, Any] = {"event_type": event.kind}
        match event.kind:
            case "tap_hit":
                pload["sweep"] = [BOOP.start_freq, BOOP.end_freq, BOOP.duration]
            case "melody_start" | "tempo_change":
                tempo = event.tempo or 1.0
                pload["tempo"] = tempo
                pload["notes"] = [[n.freq, round(n.duration, 4)] for n in melody(tempo)]

        self._publisher.publish_event(pload, topic="audio")

    def _on_snapshot(self, snap: Snapshot) -> None:
        prev, self._last = self._last, snap
        if self._publisher is None:
            return

        if snap.run != prev.run:
            self._publisher.publish_event(
                {
                    "event_type": "session_start",
                    "slots": len(snap.slots),
                    "duration_s": snap.remaining_seconds,
                    "best_score": snap.best_score,
                },
            )
        elif snap.phase is Phase.FINISHED and prev.phase is not Phase.FINISHED:
            self._publisher.publish_event(
                {
                    "event_type": "session_end",
                    "score": snap.score,
                    "best_score": snap.best_score,
                    "new_best": snap.best_score > prev.best_score,
                },
            )
        elif snap.phase is Phase.ACTIVE and snap.score != prev.score:
            self._publisher.publish_event(
                {
                    "event_type": "score",
                    "score": snap.score,
                    "delta": snap.score - prev.score,
                    "remaining_s": snap.remaining_seconds,
                },
            )

    ################################################# Utility Methods ##################################################

    @staticmethod
    def _parse_command(byte: bytes) -> PlayerCommand | None:
        if byte not in Bridge.BOARD_COMMANDS:
            return None

        match byte:
            case b"S":
                return Start()
            case b"R":
                return Restart()
            case b"M":
                return ToggleMute()
            case _:
                return Tap(int(byte))
