from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = 3000
    # Simulation steps per second.
    tick_hz: int = 60
    log_level: str = "INFO"
    # Tests step the loop by hand.
    tick_autostart: bool = True


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def settings_from_env() -> ServerSettings:
    tick_hz = _int_from_env("PRESENCE_TICK_HZ", 60)
    if tick_hz <= 0:
        raise ValueError("PRESENCE_TICK_HZ must be positive")

    return ServerSettings(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=_int_from_env("PORT", 3000),
        tick_hz=tick_hz,
        log_level=os.environ.get("PRESENCE_LOG_LEVEL", "INFO").upper(),
    )
