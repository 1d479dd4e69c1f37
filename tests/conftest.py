"""Pytest fixtures for haul ops tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from haul_ops.database import create_all, enable_sqlite_savepoints
from haul_ops.models import Driver, Site, Truck
from haul_ops.sync.payloads import SyncType
from haul_ops.sync.transport import SyncError

# Use in-memory SQLite for tests (with async support)
# For full Postgres features, use a test Postgres database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TODAY = date(2026, 3, 14)


class FixedClock:
    """Settable wall clock for trip start/complete."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: int) -> datetime:
        self.now += timedelta(minutes=minutes)
        return self.now

    def set(self, hour: int, minute: int) -> datetime:
        self.now = self.now.replace(hour=hour, minute=minute)
        return self.now


class FakeTransport:
    """Records sends; fails while ``fail`` is set."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[SyncType, dict[str, Any]]] = []
        self.batches: list[tuple[SyncType, list[dict[str, Any]]]] = []
        self.beacons: list[tuple[SyncType, list[dict[str, Any]]]] = []

    async def send(self, sync_type: SyncType, data: dict[str, Any]) -> None:
        if self.fail:
            raise SyncError("Network unavailable")
        self.sent.append((sync_type, data))

    async def send_batch(self, sync_type: SyncType, items: list[dict[str, Any]]) -> int:
        if self.fail:
            raise SyncError("Internal Server Error", 500)
        self.batches.append((sync_type, items))
        return len(items)

    def beacon(self, sync_type: SyncType, items: list[dict[str, Any]]) -> None:
        self.beacons.append((sync_type, items))


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine. One connection, fresh schema per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    await create_all(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def clock() -> FixedClock:
    """Clock fixed at 9:00 AM on TODAY."""
    return FixedClock(datetime(TODAY.year, TODAY.month, TODAY.day, 9, 0))


@pytest_asyncio.fixture
async def test_site(session: AsyncSession) -> Site:
    """Create a test site with a configured rate."""
    site = Site(
        name="North Pit",
        location="Rodriguez, Rizal",
        status="Active",
        price_per_unit=Decimal("281.69"),
        unit_type="CBM",
    )
    session.add(site)
    await session.flush()
    return site


@pytest_asyncio.fixture
async def test_truck(session: AsyncSession) -> Truck:
    """Create a test truck. Net capacity is 20.26."""
    truck = Truck(truck_number="T-007", capacity=Decimal("21.33"), status="Active")
    session.add(truck)
    await session.flush()
    return truck


@pytest_asyncio.fixture
async def test_driver(session: AsyncSession, test_truck: Truck) -> Driver:
    """Create a driver assigned to the test truck."""
    driver = Driver(name="Juan Dela Cruz", status="On Duty", truck=test_truck)
    session.add(driver)
    await session.flush()
    return driver


@pytest_asyncio.fixture
async def unassigned_driver(session: AsyncSession) -> Driver:
    """Create a driver with no truck."""
    driver = Driver(name="Pedro Santos", status="Off Duty", truck=None)
    session.add(driver)
    await session.flush()
    return driver
