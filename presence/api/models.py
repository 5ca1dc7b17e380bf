from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_NICKNAME_LENGTH = 24


class WorldSettings(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    width: int = 2000
    height: int = 2000
    # Thickness of the wall drawn around the world; players stay inside it.
    boundary_width: int = Field(50, alias="boundaryWidth")

    def min_x(self, radius: float) -> float:
        return radius + self.boundary_width

    def max_x(self, radius: float) -> float:
        return self.width - radius - self.boundary_width

    def min_y(self, radius: float) -> float:
        return radius + self.boundary_width

    def max_y(self, radius: float) -> float:
        return self.height - radius - self.boundary_width


class PlayerRecord(BaseModel):
    x: float
    y: float
    radius: float = 25
    color: str
    speed: float = 5
    dx: float = 0.0
    dy: float = 0.0
    nickname: str = ""


class MovePayload(BaseModel):
    """Direction input from a client.

    Components are clamped to [-1, 1] and the vector is scaled back to unit
    length if it is longer, so a client can never move faster than `speed`.
    """

    # Strict: booleans and numeric strings are not directions.
    dx: float = Field(..., strict=True, allow_inf_nan=False)
    dy: float = Field(..., strict=True, allow_inf_nan=False)

    @model_validator(mode="after")
    def _clamp(self) -> "MovePayload":
        dx = float(max(-1.0, min(1.0, self.dx)))
        dy = float(max(-1.0, min(1.0, self.dy)))
        length = math.hypot(dx, dy)
        if length > 1.0:
            dx /= length
            dy /= length
        self.dx = dx
        self.dy = dy
        return self


class NicknamePayload(BaseModel):
    nickname: str

    @field_validator("nickname")
    @classmethod
    def _trim(cls, v: str) -> str:
        return v.strip()[:MAX_NICKNAME_LENGTH]


class ClientMessage(BaseModel):
    """Inbound envelope: `{"type": ..., "data": ...}`."""

    type: str
    data: Any = None


class InfoResponse(BaseModel):
    name: str
    version: str
    players: int
    ticks: int
    settings: WorldSettings
