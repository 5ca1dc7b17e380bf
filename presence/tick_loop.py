from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable

from statemachine import State, StateMachine

from presence.core.events import update_event
from presence.websocket_hub import ConnectionHub
from presence.world_store import WorldStore

logger = logging.getLogger(__name__)


class TickLoopLifecycle(StateMachine):
    """idle -> running -> stopped (or failed). A loop is never restarted."""

    idle = State("idle", value="idle", initial=True)
    running = State("running", value="running")
    stopped = State("stopped", value="stopped", final=True)
    failed = State("failed", value="failed", final=True)

    begin = idle.to(running)
    halt = running.to(stopped) | idle.to(stopped)
    fail = running.to(failed)


class TickLoop:
    """Fixed-step simulation driver.

    Each step integrates every player from its input vector; a broadcast of
    the full world follows every wake-up. Scheduling is based on a monotonic
    deadline, so a late wake-up runs the missed steps (bounded by
    `max_catchup_steps`) instead of letting the simulation drift.
    """

    def __init__(
        self,
        *,
        world: WorldStore,
        hub: ConnectionHub,
        tick_hz: int = 60,
        max_catchup_steps: int = 5,
        clock: Callable[[], float] = time.monotonic,
        on_failure: Callable[[BaseException], None] | None = None,
    ) -> None:
        if tick_hz <= 0:
            raise ValueError("tick_hz must be positive")
        if max_catchup_steps < 1:
            raise ValueError("max_catchup_steps must be >= 1")

        self.world = world
        self.hub = hub
        self.interval = 1.0 / tick_hz
        self.max_catchup_steps = max_catchup_steps
        self.ticks = 0
        self.lifecycle = TickLoopLifecycle()
        self._clock = clock
        self._on_failure = on_failure
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self.lifecycle.current_state.value == "running"

    async def tick(self, steps: int = 1) -> None:
        for _ in range(steps):
            self.world.step()
        self.ticks += steps
        await self.hub.broadcast(update_event(players=self.world.snapshot()))

    def plan_steps(self, *, now: float, deadline: float) -> tuple[int, float]:
        """Return (steps to run, next deadline) for a wake-up at `now`."""

        if now < deadline:
            return 0, deadline

        due = 1 + int((now - deadline) // self.interval)
        if due > self.max_catchup_steps:
            # Too far behind: drop the backlog and resync to the clock.
            return self.max_catchup_steps, now + self.interval
        return due, deadline + due * self.interval

    def start(self) -> None:
        self.lifecycle.begin()
        self._task = asyncio.create_task(self._run(), name="presence-tick-loop")
        self._task.add_done_callback(self._on_task_done)
        logger.info("Tick loop started at %.1f Hz", 1.0 / self.interval)

    async def stop(self) -> None:
        if self.lifecycle.current_state.value in ("idle", "running"):
            self.lifecycle.halt()
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Tick loop stopped after %d ticks", self.ticks)

    async def _run(self) -> None:
        deadline = self._clock() + self.interval
        while True:
            delay = deadline - self._clock()
            await asyncio.sleep(max(delay, 0.0))

            steps, deadline = self.plan_steps(now=self._clock(), deadline=deadline)
            if steps == 0:
                continue
            try:
                await self.tick(steps)
            except Exception:
                logger.exception("Tick loop failed")
                raise

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        if self.is_running:
            self.lifecycle.fail()
        if self._on_failure is not None:
            self._on_failure(exc)
