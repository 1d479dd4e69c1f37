"""Trip lifecycle service: start and complete driver trips."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Callable
from zoneinfo import ZoneInfo

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from haul_ops.calculators.trip_metrics import (
    ZERO_COST,
    ZERO_DURATION,
    close_out,
    format_clock_time,
    receipt_number,
    trip_distance,
)
from haul_ops.config import get_settings
from haul_ops.models import Driver, DriverLocation, Trip
from haul_ops.services.state_machine import TripAction, TripStateMachine

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class DriverNotFoundError(Exception):
    """Raised when the driver does not exist."""

    def __init__(self, driver_id: int):
        self.driver_id = driver_id
        super().__init__(f"Driver {driver_id} not found")


class TruckNotAssignedError(Exception):
    """Raised when a driver without a truck tries to start a trip."""

    def __init__(self, driver_id: int):
        self.driver_id = driver_id
        super().__init__("Truck assignment is required to start a trip")


class TripConflictError(Exception):
    """Raised when the active trip was closed by another request first."""

    def __init__(self, trip_id: int | None):
        self.trip_id = trip_id
        super().__init__(f"Trip {trip_id} is no longer active")


class TripStoreError(Exception):
    """Raised when the store rejects a trip write. Not retried."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def local_now() -> datetime:
    """Current wall-clock time in the configured zone (host local if unset)."""
    tz_name = get_settings().timezone
    if tz_name:
        return datetime.now(ZoneInfo(tz_name))
    return datetime.now()


@dataclass
class TripToggleResult:
    """What a toggle did and the resulting trip row."""

    action: TripAction
    trip: Trip


class TripLifecycleService:
    """Service for the driver trip lifecycle.

    Operations:
    - toggle_trip: start a trip, or complete the active one
    - start_trip: claim the driver's active-trip slot for today
    - complete_trip: close an active trip and freeze distance/duration/cost

    The active slot is claimed through a partial unique index on
    (driver_id, date) WHERE end_time IS NULL, and closing is a conditional
    update on end_time IS NULL, so a double submit can never leave two
    active trips or close one twice.
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self.clock = clock or local_now

    async def get_driver(self, driver_id: int) -> Driver:
        driver = await self.session.get(Driver, driver_id)
        if driver is None:
            raise DriverNotFoundError(driver_id)
        return driver

    async def get_active_trip(self, driver_id: int, day: date) -> Trip | None:
        """The driver's trip for ``day`` with no end time, if any."""
        result = await self.session.execute(
            select(Trip)
            .where(
                Trip.driver_id == driver_id,
                Trip.date == day,
                Trip.end_time.is_(None),
            )
            .order_by(Trip.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def toggle_trip(self, driver_id: int) -> TripToggleResult:
        """Start a trip, or complete the one already active today."""
        driver = await self.get_driver(driver_id)
        if not driver.has_truck_assignment:
            raise TruckNotAssignedError(driver_id)

        now = self.clock()
        today = now.date()

        try:
            active = await self.get_active_trip(driver.id, today)
            state = TripStateMachine.state_for(active is not None)
            action = TripStateMachine.resolve_action(active is not None)
            next_state = TripStateMachine.apply(state, action)
            logger.debug(
                "Driver %s trip slot: %s -> %s", driver.id, state.value, next_state.value
            )

            if action == TripAction.START:
                trip = await self.start_trip(driver, now)
                if trip is not None:
                    return TripToggleResult(action=TripAction.START, trip=trip)

                # Lost the race for the slot: close the trip that won it.
                logger.info("Active trip slot taken for driver %s, completing instead", driver.id)
                active = await self.get_active_trip(driver.id, today)
                if active is None:
                    raise TripConflictError(None)

            completed = await self.complete_trip(active, now)
            return TripToggleResult(action=TripAction.COMPLETE, trip=completed)
        except SQLAlchemyError as e:
            raise TripStoreError(str(getattr(e, "orig", None) or e)) from e

    async def start_trip(self, driver: Driver, now: datetime | None = None) -> Trip | None:
        """Create the driver's active trip for today.

        Returns None when another active trip already holds the slot.
        """
        if not driver.has_truck_assignment:
            raise TruckNotAssignedError(driver.id)
        truck = driver.truck

        now = now or self.clock()
        today = now.date()

        prior = await self.session.scalar(
            select(func.count())
            .select_from(Trip)
            .where(Trip.truck_id == truck.id, Trip.date == today)
        )

        trip = Trip(
            date=today,
            driver_id=driver.id,
            driver_name=driver.name,
            truck_id=truck.id,
            truck_number=truck.truck_number,
            receipt_number=receipt_number(truck.truck_number, prior or 0),
            start_time=format_clock_time(now),
            end_time=None,
            distance=Decimal("0"),
            duration=ZERO_DURATION,
            cost=ZERO_COST,
        )

        try:
            async with self.session.begin_nested():
                self.session.add(trip)
        except IntegrityError:
            return None

        logger.info(
            "Trip %s started for driver %s on truck %s (%s)",
            trip.id,
            driver.id,
            truck.truck_number,
            trip.receipt_number,
        )
        return trip

    async def complete_trip(self, trip: Trip, now: datetime | None = None) -> Trip:
        """Close an active trip, computing its distance, duration and cost.

        Raises TripConflictError if the trip was already closed.
        """
        now = now or self.clock()
        points = await self.trip_points(trip.id, trip.driver_id)
        closeout = close_out(trip.start_time, format_clock_time(now), points)

        result = await self.session.execute(
            update(Trip)
            .where(Trip.id == trip.id, Trip.end_time.is_(None))
            .values(
                end_time=closeout.end_time,
                distance=closeout.distance,
                duration=closeout.duration,
                cost=closeout.cost,
            )
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            raise TripConflictError(trip.id)

        await self.session.refresh(trip)
        logger.info(
            "Trip %s completed: %s km, %s, %s",
            trip.id,
            closeout.distance,
            closeout.duration,
            closeout.cost,
        )
        return trip

    async def trip_points(self, trip_id: int, driver_id: int | None = None) -> list[tuple[float, float]]:
        """(lat, lon) of the trip's pings in timestamp order."""
        query = select(DriverLocation.latitude, DriverLocation.longitude).where(
            DriverLocation.trip_id == trip_id
        )
        if driver_id is not None:
            query = query.where(DriverLocation.driver_id == driver_id)
        query = query.order_by(DriverLocation.timestamp, DriverLocation.id)

        result = await self.session.execute(query)
        return [(row.latitude, row.longitude) for row in result.all()]

    async def path_distance(self, trip_id: int) -> Decimal:
        """Distance over the trip's recorded pings, in km."""
        trip = await self.session.get(Trip, trip_id)
        if trip is None:
            return Decimal("0")
        return trip_distance(await self.trip_points(trip.id, trip.driver_id))

    async def list_trips(
        self,
        day: date | None = None,
        driver_id: int | None = None,
        truck_id: int | None = None,
    ) -> list[Trip]:
        query = select(Trip)
        if day is not None:
            query = query.where(Trip.date == day)
        if driver_id is not None:
            query = query.where(Trip.driver_id == driver_id)
        if truck_id is not None:
            query = query.where(Trip.truck_id == truck_id)
        result = await self.session.execute(query.order_by(Trip.id.desc()))
        return list(result.scalars().all())

    async def record_location(
        self,
        driver_id: int,
        latitude: float,
        longitude: float,
        timestamp: datetime,
        accuracy: float = 0.0,
        speed: float | None = None,
        heading: float | None = None,
        trip_id: int | None = None,
    ) -> DriverLocation:
        """Append a GPS ping."""
        ping = DriverLocation(
            driver_id=driver_id,
            trip_id=trip_id,
            latitude=latitude,
            longitude=longitude,
            accuracy=accuracy,
            speed=speed,
            heading=heading,
            timestamp=timestamp,
        )
        self.session.add(ping)
        await self.session.flush()
        return ping
