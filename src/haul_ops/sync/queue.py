"""Client-side offline mutation queue.

Writes are persisted locally first and flushed to the sync endpoints when
the network allows. Delivery is at-least-once: an item is removed only
after the store confirms it, so an interrupted flush can send an item
twice. The queue is bounded; when full, the oldest items are dropped.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable
from uuid import uuid4

from pydantic import BaseModel

from haul_ops.sync.config import QueueConfig
from haul_ops.sync.payloads import BATCH_TYPES, PAYLOAD_MODELS, GPSPayload, SyncType
from haul_ops.sync.storage import QueueStorage
from haul_ops.sync.transport import SyncError, SyncTransport

logger = logging.getLogger(__name__)


class QueueItemStatus(str, Enum):
    PENDING = "pending"
    SYNCING = "syncing"
    SYNCED = "synced"
    FAILED = "failed"


RETRYABLE = frozenset({QueueItemStatus.PENDING, QueueItemStatus.FAILED})


@dataclass
class OfflineQueueItem:
    """A queued write awaiting delivery."""

    id: str
    type: SyncType
    payload: dict[str, Any]
    timestamp: float
    status: QueueItemStatus = QueueItemStatus.PENDING
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OfflineQueueItem:
        return cls(
            id=data["id"],
            type=SyncType(data["type"]),
            payload=data.get("payload") or {},
            timestamp=float(data.get("timestamp", 0)),
            status=QueueItemStatus(data.get("status", QueueItemStatus.PENDING)),
            error=data.get("error"),
        )

    @property
    def is_retryable(self) -> bool:
        return self.status in RETRYABLE


def _describe(error: Exception) -> str:
    if isinstance(error, SyncError):
        return str(error)
    return f"{type(error).__name__}: {error}"


@dataclass
class FlushResult:
    """Outcome of one flush pass."""

    attempted: int = 0
    synced: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


class OfflineQueue:
    """Durable queue flushed one item per request to the sync endpoint.

    Usage:
        queue = OfflineQueue(JsonFileQueueStorage(".queue"), HttpSyncTransport(cfg))
        queue.enqueue(SyncType.PAYROLL, record)
        await queue.flush()
    """

    def __init__(
        self,
        storage: QueueStorage,
        transport: SyncTransport,
        config: QueueConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.storage = storage
        self.transport = transport
        self.config = config or QueueConfig()
        self.clock = clock
        self._flushing = False
        self._recover_interrupted()

    # ---- storage helpers ----

    def _load(self) -> list[OfflineQueueItem]:
        return [OfflineQueueItem.from_dict(d) for d in self.storage.get(self.config.storage_key)]

    def _save(self, items: Iterable[OfflineQueueItem]) -> None:
        self.storage.set(self.config.storage_key, [item.to_dict() for item in items])

    def _recover_interrupted(self) -> None:
        """Items left 'syncing' by a crash go back to pending."""
        items = self._load()
        stale = [item for item in items if item.status == QueueItemStatus.SYNCING]
        if not stale:
            return
        for item in stale:
            item.status = QueueItemStatus.PENDING
        self._save(items)
        logger.info("Recovered %d interrupted queue items", len(stale))

    def _set_status(
        self,
        ids: set[str],
        status: QueueItemStatus,
        error: str | None = None,
    ) -> None:
        items = self._load()
        for item in items:
            if item.id in ids:
                item.status = status
                item.error = error
        self._save(items)

    def _remove(self, ids: set[str]) -> None:
        items = [item for item in self._load() if item.id not in ids]
        if items:
            self._save(items)
        else:
            self.storage.clear(self.config.storage_key)

    # ---- public API ----

    def enqueue(self, sync_type: SyncType | str, payload: dict[str, Any] | BaseModel) -> str:
        """Persist a write locally and return its id. Does not touch the network.

        Dict payloads are validated against the sync type's payload model and
        stored in JSON form; a bad shape raises ``ValidationError``.
        """
        kind = SyncType(sync_type)
        if not isinstance(payload, BaseModel):
            payload = PAYLOAD_MODELS[kind].model_validate(payload)
        payload = payload.model_dump(mode="json")

        item = OfflineQueueItem(
            id=f"{kind.value}-{uuid4().hex}",
            type=kind,
            payload=payload,
            timestamp=self.clock(),
        )

        items = self._load()
        if len(items) >= self.config.max_size:
            keep = self.config.max_size - max(1, self.config.drop_headroom)
            dropped = len(items) - keep
            items = items[-keep:] if keep > 0 else []
            logger.warning(
                "Queue %s at maximum size, dropped %d oldest entries",
                self.config.storage_key,
                dropped,
            )
        items.append(item)
        self._save(items)

        logger.debug("Queued %s (%d in queue)", item.id, len(items))
        return item.id

    def items(self) -> list[OfflineQueueItem]:
        return self._load()

    def pending(self) -> list[OfflineQueueItem]:
        """Items due for the next flush (pending or failed), oldest first."""
        return [item for item in self._load() if item.is_retryable]

    def pending_count(self) -> int:
        return len(self.pending())

    def __len__(self) -> int:
        return len(self._load())

    @property
    def is_flushing(self) -> bool:
        return self._flushing

    def clear(self) -> None:
        """Drop everything (explicit logout)."""
        self.storage.clear(self.config.storage_key)

    async def flush(self) -> FlushResult:
        """Send every pending/failed item, one request each.

        Confirmed items are removed; any send error leaves the item queued
        as 'failed' for the next flush. A cancelled send returns it to
        'pending'. Overlapping calls return immediately.
        """
        if self._flushing:
            return FlushResult()

        self._flushing = True
        result = FlushResult()
        try:
            for item in self.pending():
                result.attempted += 1
                self._set_status({item.id}, QueueItemStatus.SYNCING)
                try:
                    await self.transport.send(item.type, item.payload)
                except Exception as e:
                    error = _describe(e)
                    self._set_status({item.id}, QueueItemStatus.FAILED, error)
                    result.failed += 1
                    result.errors.append(error)
                    logger.warning("Failed to sync %s: %s", item.id, error)
                    continue
                except BaseException:
                    self._set_status({item.id}, QueueItemStatus.PENDING)
                    raise
                self._remove({item.id})
                result.synced += 1
        finally:
            self._flushing = False

        if result.attempted:
            logger.info(
                "Flush complete: %d synced, %d failed, %d remaining",
                result.synced,
                result.failed,
                len(self),
            )
        return result

    def shutdown(self) -> int:
        """Best-effort send at process exit; does not wait for a response.

        Items stay queued (nothing confirms them), so they may be sent again
        on the next start. Returns the number of items handed to the beacon.
        """
        grouped: dict[SyncType, list[dict[str, Any]]] = defaultdict(list)
        for item in self.pending():
            if item.type in BATCH_TYPES:
                grouped[item.type].append(item.payload)

        sent = 0
        for kind, payloads in grouped.items():
            if self.config.batch_size is not None:
                payloads = payloads[: self.config.batch_size]
            self.transport.beacon(kind, payloads)
            sent += len(payloads)
        return sent


class GPSBatchQueue(OfflineQueue):
    """GPS pings sent in batches to the batch endpoint.

    Each flush sends up to ``batch_size`` pending/failed pings in the order
    they were queued.
    """

    def __init__(
        self,
        storage: QueueStorage,
        transport: SyncTransport,
        config: QueueConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(storage, transport, config or QueueConfig.gps(), clock)

    @property
    def batch_size(self) -> int:
        return self.config.batch_size or self.config.max_size

    def add_location(self, ping: GPSPayload | dict[str, Any]) -> str:
        if isinstance(ping, dict):
            ping = GPSPayload.model_validate(ping)
        return self.enqueue(SyncType.GPS, ping)

    async def flush(self) -> FlushResult:
        """Send one batch."""
        if self._flushing:
            return FlushResult()

        batch = self.pending()[: self.batch_size]
        if not batch:
            return FlushResult()

        self._flushing = True
        ids = {item.id for item in batch}
        result = FlushResult(attempted=len(batch))
        try:
            self._set_status(ids, QueueItemStatus.SYNCING)
            try:
                await self.transport.send_batch(SyncType.GPS, [item.payload for item in batch])
            except Exception as e:
                error = _describe(e)
                self._set_status(ids, QueueItemStatus.FAILED, error)
                result.failed = len(batch)
                result.errors.append(error)
                logger.warning("Failed to send GPS batch of %d: %s", len(batch), error)
                return result
            except BaseException:
                self._set_status(ids, QueueItemStatus.PENDING)
                raise

            self._remove(ids)
            result.synced = len(batch)
            logger.info("GPS batch sent: %d locations, %d remaining", len(batch), len(self))
            return result
        finally:
            self._flushing = False

    async def flush_all(self) -> FlushResult:
        """Send batches until the queue is drained or a batch fails."""
        total = FlushResult()
        while True:
            result = await self.flush()
            total.attempted += result.attempted
            total.synced += result.synced
            total.failed += result.failed
            total.errors.extend(result.errors)
            if result.attempted == 0 or result.failed:
                return total

    def shutdown(self) -> int:
        batch = [item.payload for item in self.pending()[: self.batch_size]]
        if batch:
            self.transport.beacon(SyncType.GPS, batch)
        return len(batch)
