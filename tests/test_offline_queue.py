"""Tests for the offline mutation queue."""

import datetime as dt
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from haul_ops.sync.config import QueueConfig
from haul_ops.sync.payloads import GPSPayload, SyncType
from haul_ops.sync.queue import GPSBatchQueue, OfflineQueue, QueueItemStatus
from haul_ops.sync.storage import JsonFileQueueStorage, MemoryQueueStorage

from .conftest import FakeTransport


def ping(i: int) -> GPSPayload:
    return GPSPayload(
        driver_id=1,
        trip_id=7,
        latitude=14.5995 + i / 10000,
        longitude=120.9842,
        accuracy=5.0,
        timestamp=datetime(2026, 3, 14, 9, 0, i % 60, tzinfo=timezone.utc),
    )


def trip(n: int) -> dict:
    return {"driver_id": 1, "start_time": "9:00 AM", "receipt_number": f"RCP-007-{n:03d}"}


def payroll(n: int) -> dict:
    return {"date": "2026-03-14", "trip_count": n}


class BrokenTransport(FakeTransport):
    """Raises a non-network error on every send."""

    def __init__(self, error: Exception):
        super().__init__()
        self.error = error

    async def send(self, sync_type, data):
        raise self.error

    async def send_batch(self, sync_type, items):
        raise self.error


class TestEnqueue:
    """Test persisting writes locally."""

    def test_enqueue_persists_pending_item(self):
        storage = MemoryQueueStorage()
        queue = OfflineQueue(storage, FakeTransport(), clock=lambda: 1000.0)

        item_id = queue.enqueue(SyncType.PAYROLL, {"date": "2026-03-14", "trip_count": 5})

        assert item_id.startswith("payroll-")
        stored = storage.get("offline_queue")
        assert len(stored) == 1
        assert stored[0]["status"] == "pending"
        assert stored[0]["timestamp"] == 1000.0
        assert queue.pending_count() == 1

    def test_ids_are_unique(self):
        queue = OfflineQueue(MemoryQueueStorage(), FakeTransport())
        ids = {queue.enqueue("trip", trip(i)) for i in range(50)}
        assert len(ids) == 50

    def test_accepts_payload_models(self):
        queue = OfflineQueue(MemoryQueueStorage(), FakeTransport())
        queue.enqueue(SyncType.GPS, ping(0))

        payload = queue.items()[0].payload
        assert payload["latitude"] == 14.5995
        assert payload["timestamp"].startswith("2026-03-14T09:00:00")

    def test_unknown_type_rejected(self):
        queue = OfflineQueue(MemoryQueueStorage(), FakeTransport())
        with pytest.raises(ValueError):
            queue.enqueue("fuel", {})

    def test_full_queue_drops_oldest(self):
        queue = OfflineQueue(
            MemoryQueueStorage(),
            FakeTransport(),
            QueueConfig(max_size=3),
        )
        for i in range(5):
            queue.enqueue(SyncType.TRIP, trip(i))

        assert [item.payload["receipt_number"] for item in queue.items()] == [
            "RCP-007-002",
            "RCP-007-003",
            "RCP-007-004",
        ]

    def test_survives_restart(self, tmp_path):
        OfflineQueue(JsonFileQueueStorage(tmp_path), FakeTransport()).enqueue(
            SyncType.BILLING, {"date": "2026-03-14"}
        )

        reopened = OfflineQueue(JsonFileQueueStorage(tmp_path), FakeTransport())
        assert reopened.pending_count() == 1
        assert reopened.items()[0].type == SyncType.BILLING

    def test_interrupted_items_recovered(self):
        storage = MemoryQueueStorage()
        queue = OfflineQueue(storage, FakeTransport())
        queue.enqueue(SyncType.TRIP, trip(1))
        stored = storage.get("offline_queue")
        stored[0]["status"] = "syncing"
        storage.set("offline_queue", stored)

        recovered = OfflineQueue(storage, FakeTransport())

        assert recovered.items()[0].status == QueueItemStatus.PENDING
        assert recovered.pending_count() == 1

    def test_clear(self):
        queue = OfflineQueue(MemoryQueueStorage(), FakeTransport())
        queue.enqueue(SyncType.TRIP, trip(1))
        queue.clear()
        assert len(queue) == 0

    def test_dict_payload_stored_as_json(self, tmp_path):
        queue = OfflineQueue(JsonFileQueueStorage(tmp_path), FakeTransport())

        queue.enqueue(
            SyncType.TRIP,
            {**trip(1), "date": dt.date(2026, 3, 14), "distance": Decimal("12.40")},
        )

        payload = queue.items()[0].payload
        assert payload["date"] == "2026-03-14"
        assert payload["distance"] == "12.40"
        assert payload["receipt_number"] == "RCP-007-001"

    def test_invalid_payload_rejected(self):
        queue = OfflineQueue(MemoryQueueStorage(), FakeTransport())

        with pytest.raises(ValidationError):
            queue.enqueue(SyncType.TRIP, {"nonsense": 1})

        assert len(queue) == 0


@pytest.mark.asyncio
class TestFlush:
    """Test delivering queued writes."""

    async def test_success_removes_items(self):
        transport = FakeTransport()
        queue = OfflineQueue(MemoryQueueStorage(), transport)
        queue.enqueue(SyncType.PAYROLL, payroll(1))
        queue.enqueue(SyncType.COMPLIANCE, {"last_check": "2026-03-14"})

        result = await queue.flush()

        assert result.synced == 2
        assert len(queue) == 0
        assert [kind for kind, _ in transport.sent] == [SyncType.PAYROLL, SyncType.COMPLIANCE]

    async def test_failure_keeps_items_as_failed(self):
        queue = OfflineQueue(MemoryQueueStorage(), FakeTransport(fail=True))
        queue.enqueue(SyncType.PAYROLL, payroll(1))

        result = await queue.flush()

        assert result.failed == 1
        item = queue.items()[0]
        assert item.status == QueueItemStatus.FAILED
        assert item.error == "Network unavailable"
        assert queue.pending_count() == 1

    async def test_failed_items_retried(self):
        transport = FakeTransport(fail=True)
        queue = OfflineQueue(MemoryQueueStorage(), transport)
        queue.enqueue(SyncType.PAYROLL, payroll(1))
        await queue.flush()

        transport.fail = False
        result = await queue.flush()

        assert result.synced == 1
        assert len(queue) == 0

    async def test_unexpected_error_marks_failed(self):
        queue = OfflineQueue(MemoryQueueStorage(), BrokenTransport(TypeError("not serializable")))
        queue.enqueue(SyncType.PAYROLL, payroll(1))

        result = await queue.flush()

        assert result.failed == 1
        item = queue.items()[0]
        assert item.status == QueueItemStatus.FAILED
        assert item.error == "TypeError: not serializable"
        assert queue.pending_count() == 1

        queue.transport = FakeTransport()
        retry = await queue.flush()

        assert retry.synced == 1
        assert len(queue) == 0

    async def test_flush_empty_queue(self):
        result = await OfflineQueue(MemoryQueueStorage(), FakeTransport()).flush()
        assert result.attempted == 0

    async def test_shutdown_beacons_batchable_items(self):
        transport = FakeTransport()
        queue = OfflineQueue(MemoryQueueStorage(), transport)
        queue.enqueue(SyncType.TRIP, trip(1))
        queue.enqueue(SyncType.COMPLIANCE, {"last_check": "2026-03-14"})

        assert queue.shutdown() == 1
        [(kind, payloads)] = transport.beacons
        assert kind == SyncType.TRIP
        assert [p["receipt_number"] for p in payloads] == ["RCP-007-001"]
        assert len(queue) == 2


class TestGPSBatchQueue:
    """Test the batched GPS queue."""

    def test_defaults(self):
        queue = GPSBatchQueue(MemoryQueueStorage(), FakeTransport())
        assert queue.config.storage_key == "gps_batch_queue"
        assert queue.config.max_size == 100
        assert queue.batch_size == 10

    def test_overflow_keeps_newest(self):
        queue = GPSBatchQueue(MemoryQueueStorage(), FakeTransport())
        for i in range(101):
            queue.add_location(ping(i))

        items = queue.items()
        assert len(items) == 91
        assert items[0].payload["latitude"] == pytest.approx(14.5995 + 10 / 10000)
        assert items[-1].payload["latitude"] == pytest.approx(14.5995 + 100 / 10000)

    def test_add_location_validates_dicts(self):
        queue = GPSBatchQueue(MemoryQueueStorage(), FakeTransport())
        with pytest.raises(ValueError):
            queue.add_location({"latitude": 14.6})

    @pytest.mark.asyncio
    async def test_flush_sends_one_batch_in_order(self):
        transport = FakeTransport()
        queue = GPSBatchQueue(MemoryQueueStorage(), transport)
        for i in range(25):
            queue.add_location(ping(i))

        result = await queue.flush()

        assert result.synced == 10
        assert len(queue) == 15
        kind, batch = transport.batches[0]
        assert kind == SyncType.GPS
        assert [p["latitude"] for p in batch] == pytest.approx([14.5995 + i / 10000 for i in range(10)])

    @pytest.mark.asyncio
    async def test_flush_all_drains(self):
        transport = FakeTransport()
        queue = GPSBatchQueue(MemoryQueueStorage(), transport)
        for i in range(25):
            queue.add_location(ping(i))

        result = await queue.flush_all()

        assert result.synced == 25
        assert [len(batch) for _, batch in transport.batches] == [10, 10, 5]
        assert len(queue) == 0

    @pytest.mark.asyncio
    async def test_failed_batch_stays_queued(self):
        queue = GPSBatchQueue(MemoryQueueStorage(), FakeTransport(fail=True))
        for i in range(3):
            queue.add_location(ping(i))

        result = await queue.flush_all()

        assert result.failed == 3
        assert {item.status for item in queue.items()} == {QueueItemStatus.FAILED}
        assert queue.items()[0].error == "500: Internal Server Error"

    @pytest.mark.asyncio
    async def test_unexpected_batch_error_marks_failed(self):
        queue = GPSBatchQueue(MemoryQueueStorage(), BrokenTransport(RuntimeError("boom")))
        for i in range(3):
            queue.add_location(ping(i))

        result = await queue.flush()

        assert result.failed == 3
        assert {item.status for item in queue.items()} == {QueueItemStatus.FAILED}
        assert queue.pending_count() == 3

        queue.transport = FakeTransport()
        assert (await queue.flush()).synced == 3

    def test_shutdown_beacons_first_batch(self):
        transport = FakeTransport()
        queue = GPSBatchQueue(MemoryQueueStorage(), transport)
        for i in range(15):
            queue.add_location(ping(i))

        assert queue.shutdown() == 10
        assert len(transport.beacons[0][1]) == 10
