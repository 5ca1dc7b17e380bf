from __future__ import annotations

import logging

from fastapi import WebSocket

from presence.core.events import ServerEvent

logger = logging.getLogger(__name__)


class ConnectionHub:
    """In-process registry of live WebSockets keyed by player id.

    Contract:
      - register a connection with `connect(player_id, websocket)`.
      - fan out events with `broadcast(event, exclude=...)`.

    Sockets that fail a send are dropped from the hub; removing the player is
    left to that connection's own disconnect handling.
    """

    def __init__(self) -> None:
        self._by_player: dict[str, WebSocket] = {}

    def __len__(self) -> int:
        return len(self._by_player)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._by_player

    async def connect(self, player_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self._by_player[player_id] = websocket

    def disconnect(self, player_id: str) -> None:
        self._by_player.pop(player_id, None)

    async def send(self, player_id: str, event: ServerEvent) -> bool:
        ws = self._by_player.get(player_id)
        if ws is None:
            return False
        return await self._send_text(player_id, ws, event.to_json())

    async def broadcast(self, event: ServerEvent, *, exclude: str | None = None) -> int:
        # Serialize once and copy the targets before the first await.
        text = event.to_json()
        targets = [(pid, ws) for pid, ws in self._by_player.items() if pid != exclude]

        sent = 0
        for pid, ws in targets:
            if await self._send_text(pid, ws, text):
                sent += 1
        return sent

    async def _send_text(self, player_id: str, ws: WebSocket, text: str) -> bool:
        try:
            await ws.send_text(text)
        except Exception:
            logger.debug("Dropping dead socket for player %s", player_id)
            if self._by_player.get(player_id) is ws:
                del self._by_player[player_id]
            return False
        return True
