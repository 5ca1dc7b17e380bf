from __future__ import annotations

import logging
import os
import signal
import socket

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from presence import __version__
from presence.api.routes import STATIC_DIR, router
from presence.config import ServerSettings, settings_from_env
from presence.tick_loop import TickLoop
from presence.websocket_hub import ConnectionHub
from presence.world_store import WorldStore

logger = logging.getLogger(__name__)


def create_app(settings: ServerSettings | None = None, *, world: WorldStore | None = None) -> FastAPI:
    settings = settings or settings_from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title="presence-server", version=__version__)
    app.include_router(router)

    world = world or WorldStore()
    hub = ConnectionHub()
    app.state.settings = settings
    app.state.world = world
    app.state.hub = hub
    app.state.ticker = TickLoop(
        world=world,
        hub=hub,
        tick_hz=settings.tick_hz,
        on_failure=shutdown_on_tick_failure,
    )

    # Client assets; some test environments ship without them.
    if STATIC_DIR.exists():
        app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    @app.on_event("startup")
    async def _startup() -> None:
        if settings.tick_autostart:
            app.state.ticker.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.ticker.stop()

    return app


def shutdown_on_tick_failure(exc: BaseException) -> None:
    # A dead tick loop leaves a frozen world behind; take the server down with it.
    logger.critical("Tick loop died, shutting down: %r", exc)
    os.kill(os.getpid(), signal.SIGTERM)


def _local_ip_address() -> str:
    # No packets are sent; connecting a UDP socket only picks the outbound interface.
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        try:
            s.connect(("10.255.255.255", 1))
            return s.getsockname()[0]
        except OSError:
            return "localhost"


def run() -> None:
    load_dotenv(override=False)
    settings = settings_from_env()
    app = create_app(settings)

    logger.info("Server running on http://localhost:%d", settings.port)
    logger.info("Local network access: http://%s:%d", _local_ip_address(), settings.port)
    logger.info("Static files being served from: %s", STATIC_DIR)

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
