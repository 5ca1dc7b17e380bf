from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal

from presence.api.models import PlayerRecord, WorldSettings

EventType = Literal[
    "init",
    "newPlayer",
    "playerDisconnected",
    "update",
    "playerUpdate",
]


@dataclass(frozen=True, slots=True)
class ServerEvent:
    type: EventType
    # Already JSON-ready (plain dicts/strings), never pydantic models.
    data: Any

    def to_json(self) -> str:
        return json.dumps({"type": self.type, "data": self.data}, separators=(",", ":"))


def record_to_wire(record: PlayerRecord) -> dict[str, Any]:
    return record.model_dump()


def init_event(*, player_id: str, settings: WorldSettings, players: dict[str, dict[str, Any]]) -> ServerEvent:
    return ServerEvent(
        type="init",
        data={
            "playerId": player_id,
            "settings": settings.model_dump(by_alias=True),
            "players": players,
        },
    )


def new_player_event(*, player_id: str, record: PlayerRecord) -> ServerEvent:
    return ServerEvent(type="newPlayer", data={"id": player_id, "player": record_to_wire(record)})


def player_updated_event(*, player_id: str, record: PlayerRecord) -> ServerEvent:
    return ServerEvent(type="playerUpdate", data={"id": player_id, "player": record_to_wire(record)})


def player_disconnected_event(*, player_id: str) -> ServerEvent:
    return ServerEvent(type="playerDisconnected", data=player_id)


def update_event(*, players: dict[str, dict[str, Any]]) -> ServerEvent:
    return ServerEvent(type="update", data=players)
