from __future__ import annotations

from fastapi.requests import HTTPConnection

from presence.tick_loop import TickLoop
from presence.websocket_hub import ConnectionHub
from presence.world_store import WorldStore


# Shared state lives on `app.state` (set up by `create_app`); HTTPConnection
# lets the same dependency serve both HTTP and WebSocket routes.


def get_world(conn: HTTPConnection) -> WorldStore:
    return conn.app.state.world


def get_hub(conn: HTTPConnection) -> ConnectionHub:
    return conn.app.state.hub


def get_ticker(conn: HTTPConnection) -> TickLoop:
    return conn.app.state.ticker
