"""Tests for the session helper."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine

import haul_ops.database as database
from haul_ops.database import get_session, use_engine
from haul_ops.models import Truck


@pytest.fixture
def installed(engine: AsyncEngine, monkeypatch: pytest.MonkeyPatch) -> AsyncEngine:
    monkeypatch.setattr(database, "_engine", None)
    monkeypatch.setattr(database, "_session_factory", None)
    use_engine(engine)
    return engine


async def count_trucks() -> int:
    async with get_session() as session:
        return await session.scalar(select(func.count()).select_from(Truck))


@pytest.mark.asyncio
class TestGetSession:
    """Test commit and rollback around a unit of work."""

    async def test_commits_on_success(self, installed: AsyncEngine):
        async with get_session() as session:
            session.add(Truck(truck_number="T-101", capacity=20))

        assert await count_trucks() == 1

    async def test_rolls_back_on_error(self, installed: AsyncEngine):
        with pytest.raises(RuntimeError):
            async with get_session() as session:
                session.add(Truck(truck_number="T-102", capacity=20))
                await session.flush()
                raise RuntimeError("boom")

        assert await count_trucks() == 0

    async def test_use_engine_installs_factory(self, installed: AsyncEngine):
        assert database._engine is installed
        assert database.init_db()[0] is installed
