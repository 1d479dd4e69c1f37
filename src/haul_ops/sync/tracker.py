"""GPS watch feeding the batched location queue while a trip is active."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Protocol

from haul_ops.sync.config import TrackerConfig
from haul_ops.sync.payloads import GPSPayload
from haul_ops.sync.queue import GPSBatchQueue

logger = logging.getLogger(__name__)


@dataclass
class PositionSample:
    """One reading from a geolocation source."""

    latitude: float
    longitude: float
    accuracy: float
    timestamp: datetime
    speed: float | None = None
    heading: float | None = None


class PositionSource(Protocol):
    """Watch-style geolocation subscription."""

    def watch(self) -> AsyncIterator[PositionSample]:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LocationTracker:
    """Queues position samples for the driver's active trip.

    The watch runs only while a trip is active; ``follow_trip`` starts,
    restarts or stops it to match. Samples older than
    ``maximum_age_seconds`` are skipped. Waiting longer than
    ``timeout_seconds`` for a sample is logged and the watch keeps going.
    """

    def __init__(
        self,
        queue: GPSBatchQueue,
        source: PositionSource,
        config: TrackerConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.queue = queue
        self.source = source
        self.config = config or TrackerConfig()
        self.clock = clock
        self.driver_id: int | None = None
        self.trip_id: int | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def tracking(self) -> bool:
        return self._task is not None and not self._task.done()

    async def follow_trip(self, driver_id: int | None, active_trip_id: int | None) -> None:
        """Track when a driver has an active trip; stop otherwise."""
        if driver_id is None or active_trip_id is None:
            await self.stop()
            return
        if self.tracking and (self.driver_id, self.trip_id) == (driver_id, active_trip_id):
            return
        await self.stop()
        self.start(driver_id, active_trip_id)

    def start(self, driver_id: int, trip_id: int) -> asyncio.Task[None]:
        self.driver_id = driver_id
        self.trip_id = trip_id
        self._task = asyncio.get_running_loop().create_task(self._watch(), name="gps-watch")
        logger.info("GPS tracking started for driver %s, trip %s", driver_id, trip_id)
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("GPS tracking stopped for driver %s", self.driver_id)

    def is_stale(self, sample: PositionSample) -> bool:
        age = (self.clock() - sample.timestamp).total_seconds()
        return age > self.config.maximum_age_seconds

    def record(self, sample: PositionSample) -> str | None:
        """Queue a sample for the current trip, unless it is stale."""
        if self.driver_id is None or self.trip_id is None:
            return None
        if self.is_stale(sample):
            logger.debug("Skipping stale position from %s", sample.timestamp.isoformat())
            return None
        return self.queue.add_location(
            GPSPayload(
                driver_id=self.driver_id,
                trip_id=self.trip_id,
                latitude=sample.latitude,
                longitude=sample.longitude,
                accuracy=sample.accuracy,
                speed=sample.speed,
                heading=sample.heading,
                timestamp=sample.timestamp,
            )
        )

    async def _watch(self) -> None:
        samples = self.source.watch()
        pending: asyncio.Future[PositionSample] | None = None
        try:
            while True:
                if pending is None:
                    pending = asyncio.ensure_future(samples.__anext__())
                done, _ = await asyncio.wait({pending}, timeout=self.config.timeout_seconds)
                if not done:
                    logger.warning(
                        "No GPS position within %gs for driver %s",
                        self.config.timeout_seconds,
                        self.driver_id,
                    )
                    continue
                finished, pending = pending, None
                try:
                    sample = finished.result()
                except StopAsyncIteration:
                    logger.info("GPS source ended for driver %s", self.driver_id)
                    return
                except Exception:
                    logger.exception("GPS watch failed for driver %s", self.driver_id)
                    return
                self.record(sample)
        finally:
            if pending is not None:
                pending.cancel()
                with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration):
                    await pending
            aclose = getattr(samples, "aclose", None)
            if aclose is not None:
                await aclose()
