"""Health Probe Loop — background task that re-probes every service on a fixed interval.

Invariants:
    - First tick fires one interval after start (no probe at t=0)
    - A failing tick is logged and the loop keeps going — only stop() ends it
    - stop() is idempotent and waits for the task to finish cancelling

Design Decisions:
    - The loop knows nothing about services: it awaits an injected probe coroutine
      (ServiceRegistry.probe_all), which owns the settle-all fan-out
    - asyncio.Task over a thread: probes are coroutines sharing the app's event loop
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_PROBE_INTERVAL_SECONDS = 30.0


class HealthProbeLoop:
    """Repeating timer around a probe coroutine."""

    def __init__(
        self,
        probe: Callable[[], Awaitable[Any]],
        interval_seconds: float = DEFAULT_PROBE_INTERVAL_SECONDS,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._probe = probe
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None
        self.ticks = 0

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="health-probe-loop")
        logger.info(f"Health check started (interval: {self._interval}s)")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Health check stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._probe()
            except Exception as e:
                logger.error(f"Health probe tick failed: {e}", exc_info=True)
            self.ticks += 1
