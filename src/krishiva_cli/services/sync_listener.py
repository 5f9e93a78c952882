"""Connectivity listener.

Probes the backend on an interval and triggers a sync pass whenever it goes
from unreachable to reachable. Unless seeded with a known state, the first
probe counts as a transition when the backend is up, which gives the eager
startup pass for free when no other caller has run one.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from krishiva_cli.services.sync_scheduler import SyncScheduler

logger = logging.getLogger(__name__)


class SyncListener:
    """Watches connectivity and calls ``on_reconnect`` when it comes back."""

    def __init__(
        self,
        probe: Callable[[], Awaitable[bool]],
        on_reconnect: Callable[[], Awaitable[Any]],
        interval: float = 30,
        online: bool | None = None,
    ):
        self.probe = probe
        self.on_reconnect = on_reconnect
        self.online = online
        self.reconnects = 0
        self._scheduler = SyncScheduler(
            self.check_once, interval, run_immediately=True, name="sync-listener"
        )

    @property
    def is_running(self) -> bool:
        return self._scheduler.is_running

    async def check_once(self) -> bool:
        """Probe once; trigger a sync on an offline to online transition.

        Returns:
            Whether the backend is currently reachable
        """
        online = await self.probe()
        was_online, self.online = self.online, online

        if online and not was_online:
            self.reconnects += 1
            logger.info("backend reachable, triggering sync")
            await self.on_reconnect()
        elif was_online and not online:
            logger.info("backend unreachable, sync paused")
        return online

    def start(self) -> None:
        self._scheduler.start()

    async def stop(self) -> None:
        await self._scheduler.stop()
