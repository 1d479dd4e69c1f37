"""Tests for the flush scheduler."""

import asyncio
import logging

import pytest

from haul_ops.sync.config import FlushScheduleConfig
from haul_ops.sync.payloads import SyncType
from haul_ops.sync.queue import OfflineQueue, QueueItemStatus
from haul_ops.sync.scheduler import FlushScheduler
from haul_ops.sync.storage import MemoryQueueStorage

from .conftest import FakeTransport

FAST = FlushScheduleConfig(interval_seconds=0.01, initial_delay_seconds=0)


def make_queue(transport: FakeTransport | None = None, items: int = 2) -> OfflineQueue:
    queue = OfflineQueue(MemoryQueueStorage(), transport or FakeTransport())
    for i in range(items):
        queue.enqueue(SyncType.PAYROLL, {"date": "2026-03-14", "trip_count": i})
    return queue


class ExplodingQueue(OfflineQueue):
    async def flush(self):
        raise RuntimeError("disk full")


class HangingTransport(FakeTransport):
    """Never answers a send."""

    def __init__(self):
        super().__init__()
        self.started = asyncio.Event()

    async def send(self, sync_type, data):
        self.started.set()
        await asyncio.Event().wait()


@pytest.mark.asyncio
class TestFlushScheduler:
    """Test periodic and connectivity-triggered flushing."""

    async def test_periodic_flush(self):
        queue = make_queue()
        scheduler = FlushScheduler(queue, FAST)

        scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()

        assert len(queue) == 0
        assert scheduler.running is False

    async def test_initial_delay(self):
        queue = make_queue()
        scheduler = FlushScheduler(
            queue,
            FlushScheduleConfig(interval_seconds=0.01, initial_delay_seconds=10),
        )

        scheduler.start()
        await asyncio.sleep(0.05)
        await scheduler.stop()

        assert len(queue) == 2

    async def test_offline_pauses_periodic_flush(self):
        queue = make_queue()
        scheduler = FlushScheduler(queue, FAST)

        scheduler.notify_offline()
        scheduler.start()
        await asyncio.sleep(0.05)

        assert len(queue) == 2
        assert scheduler.online is False

        await scheduler.notify_online()
        await scheduler.stop()

        assert len(queue) == 0
        assert scheduler.online is True

    async def test_notify_online_flushes_immediately(self):
        queue = make_queue()
        scheduler = FlushScheduler(queue, FlushScheduleConfig(interval_seconds=3600))

        result = await scheduler.notify_online()

        assert result.synced == 2
        assert len(queue) == 0

    async def test_start_is_idempotent(self):
        scheduler = FlushScheduler(make_queue(), FlushScheduleConfig(interval_seconds=3600))

        first = scheduler.start()
        assert scheduler.start() is first

        await scheduler.stop()
        assert first.cancelled()

    async def test_background_errors_are_logged(self, caplog):
        queue = ExplodingQueue(MemoryQueueStorage(), FakeTransport())
        scheduler = FlushScheduler(queue, FAST)

        with caplog.at_level(logging.ERROR, logger="haul_ops.sync.scheduler"):
            assert await scheduler.flush_once() is None

        assert "Background flush of offline_queue failed" in caplog.text

    async def test_stop_during_send_keeps_items_pending(self):
        transport = HangingTransport()
        queue = make_queue(transport)
        scheduler = FlushScheduler(queue, FAST)

        scheduler.start()
        await asyncio.wait_for(transport.started.wait(), timeout=1)
        await scheduler.stop()

        assert {item.status for item in queue.items()} == {QueueItemStatus.PENDING}
        assert queue.pending_count() == 2
        assert queue.is_flushing is False

    async def test_failed_flush_keeps_loop_running(self):
        transport = FakeTransport(fail=True)
        queue = make_queue(transport)
        scheduler = FlushScheduler(queue, FAST)

        scheduler.start()
        await asyncio.sleep(0.05)
        assert scheduler.running is True

        transport.fail = False
        await asyncio.sleep(0.05)
        await scheduler.stop()

        assert len(queue) == 0


class TestScheduleConfig:
    """Test cadence validation."""

    def test_jitter(self):
        scheduler = FlushScheduler(
            make_queue(items=0),
            FlushScheduleConfig(interval_seconds=30, jitter_seconds=10),
            rng=lambda: 0.5,
        )
        assert scheduler.next_delay() == 35.0

    def test_defaults(self):
        config = FlushScheduleConfig()
        assert config.interval_seconds == 30.0
        assert config.initial_delay_seconds == 2.0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"interval_seconds": 0},
            {"jitter_seconds": -1},
            {"initial_delay_seconds": -1},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            FlushScheduleConfig(**kwargs)
