from __future__ import annotations

import logging
from pathlib import Path
from uuid import uuid4

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse

from presence import __version__
from presence.actions import dispatch_client_message
from presence.api.deps import get_hub, get_ticker, get_world
from presence.api.models import InfoResponse
from presence.core.events import init_event, new_player_event, player_disconnected_event
from presence.tick_loop import TickLoop
from presence.websocket_hub import ConnectionHub
from presence.world_store import WorldStore

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parents[1] / "static"

router = APIRouter()


async def _drop_player(*, world: WorldStore, hub: ConnectionHub, player_id: str) -> None:
    hub.disconnect(player_id)
    if world.get(player_id) is None:
        return
    world.remove_player(player_id)
    logger.info("Player disconnected: %s", player_id)
    await hub.broadcast(player_disconnected_event(player_id=player_id))


@router.websocket("/ws")
async def presence_ws(
    websocket: WebSocket,
    world: WorldStore = Depends(get_world),
    hub: ConnectionHub = Depends(get_hub),
) -> None:
    player_id = str(uuid4())
    await hub.connect(player_id, websocket)
    record = world.add_player(player_id)
    logger.info("New player connected: %s", player_id)

    try:
        await hub.send(
            player_id,
            init_event(player_id=player_id, settings=world.settings, players=world.snapshot()),
        )
        await hub.broadcast(new_player_event(player_id=player_id, record=record), exclude=player_id)

        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(code=message.get("code", 1000), reason=message.get("reason"))

            raw = message.get("text")
            if raw is None:
                logger.warning("Dropping non-text frame from %s", player_id)
                continue
            await dispatch_client_message(world=world, hub=hub, player_id=player_id, raw=raw)
    except WebSocketDisconnect:
        await _drop_player(world=world, hub=hub, player_id=player_id)
    except Exception:
        await _drop_player(world=world, hub=hub, player_id=player_id)
        raise


@router.get("/")
async def index() -> FileResponse:
    return FileResponse(STATIC_DIR / "index.html")


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/info", response_model=InfoResponse, response_model_by_alias=True)
async def info(
    world: WorldStore = Depends(get_world),
    ticker: TickLoop = Depends(get_ticker),
) -> InfoResponse:
    return InfoResponse(
        name="presence-server",
        version=__version__,
        players=len(world),
        ticks=ticker.ticks,
        settings=world.settings,
    )
