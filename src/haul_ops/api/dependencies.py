"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from haul_ops.database import init_db
from haul_ops.services.trip_service import Clock, TripLifecycleService, local_now


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, session_factory = init_db()
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_clock() -> Clock:
    """Wall clock used to date and time trips. Overridden in tests."""
    return local_now


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
TripClock = Annotated[Clock, Depends(get_clock)]


def get_trip_service(db: DbSession, clock: TripClock) -> TripLifecycleService:
    return TripLifecycleService(db, clock=clock)


TripService = Annotated[TripLifecycleService, Depends(get_trip_service)]
