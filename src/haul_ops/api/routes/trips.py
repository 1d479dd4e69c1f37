"""Trip lifecycle API endpoints."""

import datetime as dt
from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Query, status

from haul_ops.api.dependencies import DbSession, TripClock, TripService
from haul_ops.api.schemas import (
    ActiveTripResponse,
    ErrorResponse,
    LocationCreate,
    LocationResponse,
    PathDistanceResponse,
    TripListResponse,
    TripResponse,
    TripToggleResponse,
)
from haul_ops.calculators.geo import average_speed_kmh
from haul_ops.calculators.trip_metrics import duration_minutes
from haul_ops.models import Trip
from haul_ops.services.trip_service import (
    DriverNotFoundError,
    TripConflictError,
    TripStoreError,
    TruckNotAssignedError,
)

router = APIRouter(tags=["trips"])


# ============================================================================
# Driver trip toggle
# ============================================================================


@router.post(
    "/drivers/{driver_id}/trip-toggle",
    response_model=TripToggleResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def toggle_trip(
    db: DbSession,
    service: TripService,
    driver_id: Annotated[int, Path()],
) -> TripToggleResponse:
    """Start a trip, or complete the driver's active trip for today."""
    try:
        result = await service.toggle_trip(driver_id)
        await db.commit()
    except DriverNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except TruckNotAssignedError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except TripConflictError as e:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except TripStoreError as e:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)

    return TripToggleResponse(
        action=result.action.value,
        trip=TripResponse.model_validate(result.trip),
    )


@router.get(
    "/drivers/{driver_id}/active-trip",
    response_model=ActiveTripResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_active_trip(
    service: TripService,
    clock: TripClock,
    driver_id: Annotated[int, Path()],
) -> ActiveTripResponse:
    """Get the driver's active trip for today, if any."""
    try:
        driver = await service.get_driver(driver_id)
    except DriverNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    today = clock().date()
    trip = await service.get_active_trip(driver.id, today)
    return ActiveTripResponse(
        driver_id=driver.id,
        date=today,
        trip=TripResponse.model_validate(trip) if trip else None,
    )


# ============================================================================
# Trips
# ============================================================================


@router.get("/trips", response_model=TripListResponse)
async def list_trips(
    service: TripService,
    trip_date: Annotated[dt.date | None, Query(alias="date")] = None,
    driver_id: int | None = None,
    truck_id: int | None = None,
) -> TripListResponse:
    """List trips with optional filters."""
    trips = await service.list_trips(day=trip_date, driver_id=driver_id, truck_id=truck_id)
    return TripListResponse(
        items=[TripResponse.model_validate(t) for t in trips],
        total=len(trips),
    )


@router.get(
    "/trips/{trip_id}/path-distance",
    response_model=PathDistanceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_path_distance(
    db: DbSession,
    service: TripService,
    trip_id: Annotated[int, Path()],
) -> PathDistanceResponse:
    """Distance over a trip's recorded GPS pings."""
    trip = await db.get(Trip, trip_id)
    if trip is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip not found",
        )

    points = await service.trip_points(trip.id, trip.driver_id)
    distance = await service.path_distance(trip.id)

    # None while the trip is still open.
    speed = None
    minutes = duration_minutes(trip.start_time, trip.end_time)
    if minutes is not None:
        speed = average_speed_kmh(float(distance), minutes)

    return PathDistanceResponse(
        trip_id=trip.id,
        points=len(points),
        distance_km=distance,
        average_speed_kmh=speed,
    )


# ============================================================================
# GPS pings
# ============================================================================


@router.post(
    "/locations",
    response_model=LocationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_location(
    db: DbSession,
    service: TripService,
    payload: LocationCreate,
) -> LocationResponse:
    """Store a single GPS ping."""
    ping = await service.record_location(**payload.model_dump())
    await db.commit()
    return LocationResponse.model_validate(ping)
