"""Offline sync configuration objects.

Explicit configuration for the client-side queue, flush schedule, GPS
watch and sync endpoint. All objects are frozen and validated on creation.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class QueueConfig:
    """
    Offline queue behaviour.

    Attributes:
        storage_key: Key the queue is persisted under.
        max_size: Maximum number of queued items. When full, the oldest
            items are dropped to make room.
        drop_headroom: How many of the oldest items to drop at once when
            the queue is full. 0 drops just enough for the new item.
        batch_size: Items per flush request for batched queues; None for
            one request per item.
    """

    storage_key: str = "offline_queue"
    max_size: int = 500
    drop_headroom: int = 0
    batch_size: int | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.storage_key:
            raise ValueError("storage_key is required")
        if self.max_size < 1:
            raise ValueError("max_size must be at least 1")
        if self.drop_headroom < 0 or self.drop_headroom >= self.max_size:
            raise ValueError("drop_headroom must be between 0 and max_size - 1")
        if self.batch_size is not None and not 1 <= self.batch_size <= self.max_size:
            raise ValueError("batch_size must be between 1 and max_size")

    @classmethod
    def gps(cls) -> QueueConfig:
        """Defaults for the batched GPS queue: 10 per batch, at most 100 held."""
        return cls(storage_key="gps_batch_queue", max_size=100, drop_headroom=10, batch_size=10)


@dataclass(frozen=True)
class FlushScheduleConfig:
    """
    Periodic flush cadence.

    Attributes:
        interval_seconds: Time between periodic flushes. Default 30.
        jitter_seconds: Random extra delay added to each interval, so many
            clients do not flush in lockstep. Default 0.
        initial_delay_seconds: Delay before the first flush after start.
            Default 2.
    """

    interval_seconds: float = 30.0
    jitter_seconds: float = 0.0
    initial_delay_seconds: float = 2.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if self.jitter_seconds < 0:
            raise ValueError("jitter_seconds cannot be negative")
        if self.initial_delay_seconds < 0:
            raise ValueError("initial_delay_seconds cannot be negative")


@dataclass(frozen=True)
class TrackerConfig:
    """
    GPS watch settings.

    Attributes:
        timeout_seconds: How long to wait for a position before logging a
            timeout. Default 10.
        maximum_age_seconds: Positions older than this are ignored.
            Default 30.
    """

    timeout_seconds: float = 10.0
    maximum_age_seconds: float = 30.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.maximum_age_seconds < 0:
            raise ValueError("maximum_age_seconds cannot be negative")


@dataclass(frozen=True)
class SyncEndpointConfig:
    """
    Where queued writes are sent.

    Attributes:
        base_url: Server root, e.g. "https://ops.example.com".
        sync_path: Single-record endpoint.
        batch_path: Batch endpoint.
        timeout_seconds: Request timeout; None keeps the client default.
    """

    base_url: str
    sync_path: str = "/api/v1/sync"
    batch_path: str = "/api/v1/sync/batch"
    timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.base_url:
            raise ValueError("base_url is required")

    @property
    def sync_url(self) -> str:
        return self.base_url.rstrip("/") + self.sync_path

    @property
    def batch_url(self) -> str:
        return self.base_url.rstrip("/") + self.batch_path
