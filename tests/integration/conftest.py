"""Integration test fixtures: the API against an in-memory database."""

from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from haul_ops.api.app import create_app
from haul_ops.api.dependencies import get_clock, get_db_session
from haul_ops.models import Driver, Site, Truck

from ..conftest import FixedClock


@pytest_asyncio.fixture
async def seeded(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, int]:
    """Commit a site, a truck and two drivers (one without a truck)."""
    async with session_factory() as session:
        site = Site(name="North Pit", price_per_unit=Decimal("281.69"), unit_type="CBM")
        truck = Truck(truck_number="T-007", capacity=Decimal("21.33"), status="Active")
        driver = Driver(name="Juan Dela Cruz", status="On Duty", truck=truck)
        unassigned = Driver(name="Pedro Santos", status="Off Duty", truck=None)
        session.add_all([site, truck, driver, unassigned])
        await session.commit()
        return {
            "site_id": site.id,
            "truck_id": truck.id,
            "driver_id": driver.id,
            "unassigned_driver_id": unassigned.id,
        }


@pytest_asyncio.fixture
async def app(
    session_factory: async_sessionmaker[AsyncSession],
    clock: FixedClock,
) -> AsyncGenerator[FastAPI, None]:
    """Application wired to the test database and clock."""
    app = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_session
    app.dependency_overrides[get_clock] = lambda: clock
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
