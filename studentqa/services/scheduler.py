# =============================================================================
# Periodic Tasks - In-Process Scheduled Maintenance
# =============================================================================
#
# A PeriodicTask runs an async job every `interval` seconds on the event
# loop. It is started by the FastAPI lifespan (studentqa/main.py) and
# cancelled on shutdown.
#
# The sleep function is injectable: tests pass a fake that records the
# requested delay and advances a fake clock instead of actually waiting,
# or they call run_once() directly.
#
# A failing run is logged and the loop keeps going; the next tick retries.
# Multi-process deployments use the Celery beat equivalents in
# studentqa/workers/tasks.py instead.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class PeriodicTask:
    """Run `job` every `interval` seconds until stopped."""

    def __init__(
        self,
        name: str,
        job: Callable[[], Awaitable[int]],
        interval: float,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.name = name
        self._job = job
        self._interval = interval
        self._sleep = sleep
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        """Run the job a single time. Returns the number of items affected."""
        try:
            affected = await self._job()
        except Exception:
            logger.exception("Periodic task '%s' failed", self.name)
            return 0
        if affected:
            logger.info("Periodic task '%s' removed %d item(s)", self.name, affected)
        return affected

    async def run_forever(self, max_runs: int | None = None) -> None:
        """
        Sleep, run, repeat.

        Args:
            max_runs: Stop after this many runs (tests). None = forever.
        """
        runs = 0
        while max_runs is None or runs < max_runs:
            await self._sleep(self._interval)
            await self.run_once()
            runs += 1

    def start(self) -> None:
        if self.running:
            return
        logger.info(
            "Starting periodic task '%s' (every %.0fs)", self.name, self._interval,
        )
        self._task = asyncio.create_task(self.run_forever(), name=self.name)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Stopped periodic task '%s'", self.name)
