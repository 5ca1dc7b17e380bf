from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import ValidationError

from presence.api.models import ClientMessage, MovePayload, NicknamePayload, PlayerRecord
from presence.core.events import player_updated_event
from presence.websocket_hub import ConnectionHub
from presence.world_store import WorldStore

logger = logging.getLogger(__name__)

ActionName = Literal["move", "setNickname"]


@dataclass(frozen=True, slots=True)
class ActionResult:
    action: ActionName
    record: PlayerRecord


def parse_client_message(raw: str) -> ClientMessage:
    """Parse one inbound text frame.

    Raises pydantic's ValidationError for non-JSON frames too.
    """

    return ClientMessage.model_validate_json(raw)


def _nickname_payload(data: Any) -> NicknamePayload:
    # Browsers send the bare string; accept `{"nickname": ...}` as well.
    if isinstance(data, str):
        return NicknamePayload(nickname=data)
    return NicknamePayload.model_validate(data)


async def dispatch_client_message(
    *,
    world: WorldStore,
    hub: ConnectionHub,
    player_id: str,
    raw: str,
) -> ActionResult | None:
    """Apply one inbound frame from `player_id`.

    Invalid frames are logged and dropped; the connection stays open and the
    player's state is left untouched. Returns None when nothing was applied.
    """

    try:
        msg = parse_client_message(raw)
    except ValidationError:
        logger.warning("Dropping malformed frame from %s", player_id)
        return None

    try:
        if msg.type == "move":
            move = MovePayload.model_validate(msg.data)
            record = world.set_input(player_id, move)
            if record is None:
                return None
            return ActionResult(action="move", record=record)

        if msg.type == "setNickname":
            payload = _nickname_payload(msg.data)
            record = world.set_nickname(player_id, payload.nickname)
            if record is None:
                return None
            await hub.broadcast(player_updated_event(player_id=player_id, record=record))
            return ActionResult(action="setNickname", record=record)
    except ValidationError as e:
        logger.warning("Dropping invalid %s payload from %s: %s", msg.type, player_id, e.errors(include_url=False))
        return None

    logger.warning("Unknown message type from %s: %s", player_id, msg.type)
    return None
