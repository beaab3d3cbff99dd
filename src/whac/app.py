"""FastAPI front end for a game session.

Provides endpoints for:
    - Reading the current session snapshot & best score
    - Sending player commands (start, restart, mute, tap)
    - Streaming snapshots to a renderer (Server-Sent Events)

The session lives on uvicorn's event loop; it is built in the lifespan
handler so its timers run on that loop. When `mqtt_broker` is configured the
MQTT bridge is attached for the lifetime of the app as well.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, NamedTuple
from urllib.parse import quote

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import StreamingResponse

from .bridge import Bridge
from .game import (
    BEST_SCORE_FILE,
    AudioChannel,
    JsonBestScoreStore,
    LogAudioSink,
    SessionController,
)
from .game.constants import DEFAULT_SLOT_COUNT
from .mqtt import MqttClient
from .types import BestScoreJson, ShareJson, StatusOk  # noqa: TC001 (FastAPI resolves these at runtime)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from .game import Snapshot

TOPIC_NAMESPACE: Final = "whac"
SHARE_URL: Final = "https://wa.me/?text="

# Snapshots buffered per SSE client before the oldest are dropped
STREAM_BUFFER: Final = 256

_log = logging.getLogger("App")


class AppConf(NamedTuple):
    data_dir: Path = Path()
    slots: int = DEFAULT_SLOT_COUNT
    muted: bool = False
    mqtt_broker: str | None = None
    mqtt_port: int = 1883
    device_id: str = "whac-web"


def _session(request: Request) -> SessionController:
    return request.app.state.session


async def snapshot_stream(session: SessionController, request: Request) -> AsyncIterator[str]:
    """Yield SSE `data:` lines: the current snapshot, then one per change until the client leaves."""

    queue: asyncio.Queue[Snapshot] = asyncio.Queue(maxsize=STREAM_BUFFER)

    def push(snap: Snapshot) -> None:
        if queue.full():
            queue.get_nowait()  # Slow client: drop oldest
        queue.put_nowait(snap)

    unsubscribe = session.subscribe(push)
    try:
        yield f"data: {json.dumps(session.snapshot().as_dict())}\n\n"
        while not await request.is_disconnected():
            try:
                snap = await asyncio.wait_for(queue.get(), timeout=1.0)
            except TimeoutError:
                continue
            yield f"data: {json.dumps(snap.as_dict())}\n\n"
    finally:
        unsubscribe()


def create_app(conf: AppConf | None = None) -> FastAPI:
    conf = conf if conf is not None else AppConf()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        loop = asyncio.get_running_loop()
        session = SessionController(
            loop,
            store=JsonBestScoreStore(conf.data_dir / BEST_SCORE_FILE),
            audio=AudioChannel([LogAudioSink()], muted=conf.muted),
            slot_count=conf.slots,
        )
        app.state.session = session

        bridge: Bridge | None = None
        mqtt: MqttClient | None = None
        if conf.mqtt_broker:
            bridge = Bridge(session, loop)
            mqtt = MqttClient(
                broker=conf.mqtt_broker,
                port=conf.mqtt_port,
                device_id=conf.device_id,
                namespace=TOPIC_NAMESPACE,
                on_command=bridge.handle_command,
                last_will="offline",  # Auto-publish on ungraceful disconnect
            )
            if await asyncio.to_thread(mqtt.connect):
                bridge.attach(mqtt)
            else:
                _log.warning("Continuing without MQTT")
                mqtt = None

        try:
            yield
        finally:
            if bridge is not None:
                bridge.detach()
            if mqtt is not None:
                mqtt.disconnect()
            session.shutdown()
            _log.info("Shutdown complete")

    app = FastAPI(
        title="Whac-A-Mole Session",
        description="Timed reaction-game session with HTTP & MQTT control.",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/session")
    async def get_session(request: Request) -> dict[str, Any]:
        """Return the current session snapshot."""
        return _session(request).snapshot().as_dict()

    @app.get("/best")
    async def get_best(request: Request) -> BestScoreJson:
        return {"best_score": _session(request).snapshot().best_score}

    @app.get("/share")
    async def get_share(request: Request) -> ShareJson:
        """Return a share link bragging about the best score."""
        best = _session(request).snapshot().best_score
        text = f"My highest score = {best} in the Christmas Nerf game! \N{CHRISTMAS TREE}"
        return {"text": text, "url": SHARE_URL + quote(text)}

    # === Command Endpoints ===

    @app.post("/command/start")
    async def post_start_command(request: Request) -> StatusOk:
        """Start a session (no-op while one is active)."""
        _session(request).start()
        return {"ok": True}

    @app.post("/command/restart")
    async def post_restart_command(request: Request) -> StatusOk:
        """Reset & restart the active session."""
        _session(request).restart()
        return {"ok": True}

    @app.post("/command/mute")
    async def post_mute_command(request: Request) -> StatusOk:
        """Toggle audio cues."""
        _session(request).toggle_mute()
        return {"ok": True}

    @app.post("/command/tap/{slot_id}")
    async def post_tap_command(request: Request, slot_id: int) -> StatusOk:
        """Tap a slot. Taps on empty slots are accepted & ignored by the session."""
        session = _session(request)
        if not (0 <= slot_id < session.slot_count):
            raise HTTPException(status_code=400, detail=f"Slot must be between 0 and {session.slot_count - 1}")

        session.tap(slot_id)
        return {"ok": True}

    @app.get("/events/stream")
    async def stream_events(request: Request) -> StreamingResponse:
        """Server-Sent Events stream: current snapshot, then one per change."""
        return StreamingResponse(snapshot_stream(_session(request), request), media_type="text/event-stream")

    return app
