from __future__ import annotations

import random
from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from presence.config import ServerSettings
from presence.main import create_app
from presence.world_store import WorldStore


class FakeWebSocket:
    """Just enough of a Starlette WebSocket for hub/tick tests."""

    def __init__(self, *, dead: bool = False) -> None:
        self.accepted = False
        self.sent: list[str] = []
        self.dead = dead

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, text: str) -> None:
        if self.dead:
            raise RuntimeError("socket closed")
        self.sent.append(text)


@pytest.fixture()
def fake_ws_factory():
    return FakeWebSocket


@pytest.fixture()
def world() -> WorldStore:
    return WorldStore(rng=random.Random(1234))


@pytest.fixture()
def app(world: WorldStore) -> FastAPI:
    # Tests step the simulation themselves via `ticker.tick()`.
    return create_app(ServerSettings(tick_autostart=False), world=world)


@pytest.fixture()
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c
