"""Periodic task runner.

A SyncScheduler owns exactly one asyncio task that calls a coroutine
function every ``interval`` seconds. ``stop()`` (or leaving the ``async
with`` block) cancels it, so nothing keeps ticking after its owner is gone.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Supervised periodic task with a single cancel handle."""

    def __init__(
        self,
        tick: Callable[[], Awaitable[Any]],
        interval: float,
        *,
        run_immediately: bool = False,
        name: str = "sync-scheduler",
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.tick = tick
        self.interval = interval
        self.run_immediately = run_immediately
        self.name = name
        self.ticks = 0
        self.failures = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. Calling it again while running does nothing."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logger.debug("%s started (every %ss)", self.name, self.interval)

    async def stop(self) -> None:
        """Cancel the task and wait until it has finished."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.debug("%s stopped after %d ticks", self.name, self.ticks)

    async def __aenter__(self) -> SyncScheduler:
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def _run(self) -> None:
        if not self.run_immediately:
            await asyncio.sleep(self.interval)
        while True:
            await self._tick_once()
            await asyncio.sleep(self.interval)

    async def _tick_once(self) -> None:
        self.ticks += 1
        try:
            await self.tick()
        except asyncio.CancelledError:
            raise
        except Exception:
            # A failed tick must not end the loop
            self.failures += 1
            logger.exception("%s tick %d failed", self.name, self.ticks)
