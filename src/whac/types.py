from __future__ import annotations

from typing import Literal, TypedDict

type DevStatus = Literal["online", "offline"]


class CommonPayload(TypedDict):
    device_id: str
    ts: int


class StatusPayload(CommonPayload):
    status: DevStatus


class StatusOk(TypedDict):
    ok: bool


class BestScoreJson(TypedDict):
    best_score: int


class ShareJson(TypedDict):
    text: str
    url: str
