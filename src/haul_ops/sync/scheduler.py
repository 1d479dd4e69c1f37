"""Periodic and connectivity-triggered queue flushing."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Callable

from haul_ops.sync.config import FlushScheduleConfig
from haul_ops.sync.queue import FlushResult, OfflineQueue

logger = logging.getLogger(__name__)


class FlushScheduler:
    """Runs ``queue.flush()`` on an interval and when connectivity returns.

    Usage:
        scheduler = FlushScheduler(queue, FlushScheduleConfig(interval_seconds=30))
        scheduler.start()
        scheduler.notify_offline()   # periodic flushes pause
        scheduler.notify_online()    # immediate flush, periodic flushes resume
        await scheduler.stop()
    """

    def __init__(
        self,
        queue: OfflineQueue,
        config: FlushScheduleConfig | None = None,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self.queue = queue
        self.config = config or FlushScheduleConfig()
        self._rng = rng
        self._online = True
        self._task: asyncio.Task[None] | None = None
        self._triggered: set[asyncio.Task[FlushResult | None]] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def online(self) -> bool:
        return self._online

    def next_delay(self) -> float:
        """Interval plus a random share of the configured jitter."""
        return self.config.interval_seconds + self.config.jitter_seconds * self._rng()

    def start(self) -> asyncio.Task[None]:
        """Start the periodic loop on the running event loop."""
        if self._task is not None and not self._task.done():
            return self._task
        self._task = asyncio.get_running_loop().create_task(self._run(), name="queue-flush")
        return self._task

    async def stop(self) -> None:
        """Cancel the periodic loop and any triggered flushes."""
        tasks = list(self._triggered)
        if self._task is not None:
            tasks.append(self._task)
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._triggered.clear()

    def notify_online(self) -> asyncio.Task[FlushResult | None]:
        """Connectivity returned: flush now."""
        self._online = True
        logger.info("Connection restored, flushing %s", self.queue.config.storage_key)
        task = asyncio.get_running_loop().create_task(self.flush_once())
        self._triggered.add(task)
        task.add_done_callback(self._triggered.discard)
        return task

    def notify_offline(self) -> None:
        self._online = False

    async def flush_once(self) -> FlushResult | None:
        """Flush, logging instead of raising on unexpected errors."""
        try:
            return await self.queue.flush()
        except Exception:
            logger.exception("Background flush of %s failed", self.queue.config.storage_key)
            return None

    async def _run(self) -> None:
        await asyncio.sleep(self.config.initial_delay_seconds)
        while True:
            if self._online and self.queue.pending_count():
                await self.flush_once()
            await asyncio.sleep(self.next_delay())
