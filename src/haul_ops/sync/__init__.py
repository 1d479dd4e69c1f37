"""Client-side offline sync: durable queue, transport, scheduling and GPS watch."""

from haul_ops.sync.config import FlushScheduleConfig, QueueConfig, SyncEndpointConfig, TrackerConfig
from haul_ops.sync.payloads import SyncType
from haul_ops.sync.queue import FlushResult, GPSBatchQueue, OfflineQueue, OfflineQueueItem, QueueItemStatus
from haul_ops.sync.scheduler import FlushScheduler
from haul_ops.sync.storage import JsonFileQueueStorage, MemoryQueueStorage, QueueStorage
from haul_ops.sync.tracker import LocationTracker, PositionSample
from haul_ops.sync.transport import HttpSyncTransport, SyncError, SyncTransport

__all__ = [
    "FlushScheduleConfig",
    "QueueConfig",
    "SyncEndpointConfig",
    "TrackerConfig",
    "SyncType",
    "FlushResult",
    "GPSBatchQueue",
    "OfflineQueue",
    "OfflineQueueItem",
    "QueueItemStatus",
    "FlushScheduler",
    "JsonFileQueueStorage",
    "MemoryQueueStorage",
    "QueueStorage",
    "LocationTracker",
    "PositionSample",
    "HttpSyncTransport",
    "SyncError",
    "SyncTransport",
]
