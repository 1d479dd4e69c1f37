"""Payroll API endpoints."""

import datetime as dt
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from haul_ops.api.dependencies import DbSession
from haul_ops.api.schemas import (
    ErrorResponse,
    PayrollCalculateRequest,
    PayrollCalculateResponse,
    PayrollDefaultsResponse,
    PayrollRecordCreate,
    PayrollRecordResponse,
)
from haul_ops.calculators.payroll import format_peso
from haul_ops.calculators.rate_resolver import (
    PayrollDefaultsResolver,
    SiteNotFoundError,
    TruckNotFoundError,
)
from haul_ops.services.payroll_service import PayrollService, PayrollValidationError
from haul_ops.services.trip_service import DriverNotFoundError

router = APIRouter(prefix="/payroll", tags=["payroll"])

NOT_FOUND_ERRORS = (DriverNotFoundError, SiteNotFoundError, TruckNotFoundError)


@router.post(
    "/calculate",
    response_model=PayrollCalculateResponse,
    responses={404: {"model": ErrorResponse}},
)
async def calculate_payroll(
    db: DbSession,
    payload: PayrollCalculateRequest,
) -> PayrollCalculateResponse:
    """Compute a payroll total without saving it."""
    service = PayrollService(db)
    try:
        inputs, result, unit_type = await service.preview(**payload.model_dump())
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return PayrollCalculateResponse(
        formula=result.formula.value,
        total=result.total,
        total_display=format_peso(result.total),
        driver_pay=result.driver_pay,
        explanation=result.explanation,
        trip_count=inputs.trip_count,
        price_per_unit=inputs.price_per_unit,
        volume=inputs.volume,
        unit_type=unit_type,
        gps_distance_km=inputs.gps_distance_km,
        use_gps=inputs.use_gps,
    )


@router.post(
    "/records",
    response_model=PayrollRecordResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_payroll_record(
    db: DbSession,
    payload: PayrollRecordCreate,
) -> PayrollRecordResponse:
    """Compute and save a payroll record."""
    service = PayrollService(db)
    fields = payload.model_dump(exclude={"date"})
    try:
        record = await service.create_record(record_date=payload.date, **fields)
    except PayrollValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    await db.commit()
    return PayrollRecordResponse.model_validate(record)


@router.get("/records", response_model=list[PayrollRecordResponse])
async def list_payroll_records(
    db: DbSession,
    driver_id: int | None = None,
    record_date: Annotated[dt.date | None, Query(alias="date")] = None,
) -> list[PayrollRecordResponse]:
    """List payroll records, newest first."""
    records = await PayrollService(db).list_records(driver_id=driver_id, record_date=record_date)
    return [PayrollRecordResponse.model_validate(r) for r in records]


@router.get(
    "/defaults",
    response_model=PayrollDefaultsResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_defaults(
    db: DbSession,
    driver_id: int | None = None,
    site_id: int | None = None,
    truck_id: int | None = None,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
) -> PayrollDefaultsResponse:
    """Form defaults for a driver/site/truck selection."""
    resolver = PayrollDefaultsResolver(db)
    try:
        defaults = await resolver.resolve(
            driver_id=driver_id,
            site_id=site_id,
            truck_id=truck_id,
            start_date=start_date,
            end_date=end_date,
        )
    except NOT_FOUND_ERRORS as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return PayrollDefaultsResponse.model_validate(defaults)
