from __future__ import annotations

import random
from typing import Any

from presence.api.models import MovePayload, PlayerRecord, WorldSettings

PLAYER_RADIUS = 25
PLAYER_SPEED = 5


def _clamp(v: float, vmin: float, vmax: float) -> float:
    return max(vmin, min(vmax, v))


def random_color(rng: random.Random) -> str:
    return f"#{rng.randrange(0x1000000):06x}"


class WorldStore:
    """Authoritative in-memory player state, keyed by connection id.

    Owned by the application (see `presence.main.create_app`) and only touched
    from the event loop thread, so it takes no lock.
    """

    def __init__(self, *, settings: WorldSettings | None = None, rng: random.Random | None = None) -> None:
        self.settings = settings or WorldSettings()
        self._rng = rng or random.Random()
        self._players: dict[str, PlayerRecord] = {}

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._players

    def get(self, player_id: str) -> PlayerRecord | None:
        return self._players.get(player_id)

    def add_player(self, player_id: str) -> PlayerRecord:
        if player_id in self._players:
            raise ValueError(f"Player already exists: {player_id}")

        # Spawn anywhere in the world; the first step pulls it inside the boundary.
        record = PlayerRecord(
            x=self._rng.uniform(0, self.settings.width),
            y=self._rng.uniform(0, self.settings.height),
            radius=PLAYER_RADIUS,
            color=random_color(self._rng),
            speed=PLAYER_SPEED,
        )
        self._players[player_id] = record
        return record

    def remove_player(self, player_id: str) -> PlayerRecord:
        return self._players.pop(player_id)

    def set_input(self, player_id: str, move: MovePayload) -> PlayerRecord | None:
        record = self._players.get(player_id)
        if record is None:
            return None
        record.dx = move.dx
        record.dy = move.dy
        return record

    def set_nickname(self, player_id: str, nickname: str) -> PlayerRecord | None:
        record = self._players.get(player_id)
        if record is None:
            return None
        record.nickname = nickname
        return record

    def step(self) -> None:
        s = self.settings
        for p in self._players.values():
            p.x = _clamp(p.x + p.dx * p.speed, s.min_x(p.radius), s.max_x(p.radius))
            p.y = _clamp(p.y + p.dy * p.speed, s.min_y(p.radius), s.max_y(p.radius))

    def snapshot(self) -> dict[str, dict[str, Any]]:
        return {pid: p.model_dump() for pid, p in self._players.items()}
