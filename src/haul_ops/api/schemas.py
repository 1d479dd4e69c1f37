"""Pydantic schemas for API request/response models."""

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Shared schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    detail: str
    code: str | None = None


# ============================================================================
# Trip schemas
# ============================================================================


class TripResponse(BaseModel):
    """Schema for trip response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    date: dt.date | None = None
    driver_id: int
    driver_name: str | None = None
    truck_id: int | None = None
    truck_number: str | None = None
    receipt_number: str | None = None
    start_time: str
    end_time: str | None = None
    distance: Decimal
    duration: str
    cost: str


class TripToggleResponse(BaseModel):
    """Schema for the result of a trip toggle."""

    action: str
    trip: TripResponse


class ActiveTripResponse(BaseModel):
    """Schema for a driver's active trip lookup."""

    driver_id: int
    date: dt.date
    trip: TripResponse | None = None


class TripListResponse(BaseModel):
    """Schema for listing trips."""

    items: list[TripResponse]
    total: int


class PathDistanceResponse(BaseModel):
    """Schema for the distance over a trip's recorded pings."""

    trip_id: int
    points: int
    distance_km: Decimal
    average_speed_kmh: float | None = None


class LocationCreate(BaseModel):
    """Schema for a single GPS ping."""

    driver_id: int
    trip_id: int | None = None
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float = 0.0
    speed: float | None = None
    heading: float | None = None
    timestamp: dt.datetime


class LocationResponse(BaseModel):
    """Schema for a stored GPS ping."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    driver_id: int
    trip_id: int | None = None
    latitude: float
    longitude: float
    accuracy: float
    speed: float | None = None
    heading: float | None = None
    timestamp: dt.datetime


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollCalculateRequest(BaseModel):
    """Schema for a payroll computation. Unset values use resolved defaults."""

    driver_id: int | None = None
    truck_id: int | None = None
    site_id: int | None = None
    trip_count: int = 0
    price_per_unit: Decimal | None = None
    volume: Decimal | None = None
    gps_distance_km: Decimal | None = None
    use_gps: bool | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None


class PayrollCalculateResponse(BaseModel):
    """Schema for a payroll computation result."""

    formula: str
    total: Decimal
    total_display: str
    driver_pay: Decimal
    explanation: str
    trip_count: int
    price_per_unit: Decimal
    volume: Decimal
    unit_type: str
    gps_distance_km: Decimal
    use_gps: bool


class PayrollRecordCreate(BaseModel):
    """Schema for creating a payroll record."""

    driver_id: int | None = None
    truck_id: int | None = None
    date: dt.date
    trip_count: int = 0
    site_id: int | None = None
    price_per_unit: Decimal | None = None
    volume: Decimal | None = None
    gps_distance_km: Decimal | None = None
    use_gps: bool | None = None
    unit_type: str | None = None


class PayrollRecordResponse(BaseModel):
    """Schema for payroll record response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    driver_id: int | None = None
    driver_name: str | None = None
    truck_id: int | None = None
    truck_number: str | None = None
    date: dt.date
    trip_count: int
    price_per_unit: Decimal
    volume: Decimal
    unit_type: str
    total_cost: Decimal
    payroll_cost: Decimal
    use_gps: bool
    site_id: int | None = None
    site_name: str | None = None


class PayrollDefaultsResponse(BaseModel):
    """Schema for payroll form defaults."""

    model_config = ConfigDict(from_attributes=True)

    price_per_unit: Decimal
    unit_type: str
    volume: Decimal
    gps_distance_km: Decimal
    use_gps: bool


# ============================================================================
# Compliance schemas
# ============================================================================


class ComplianceCheckCreate(BaseModel):
    """Schema for submitting a compliance check."""

    site: str | None = None
    truck_id: int | None = None
    truck_number: str | None = None
    last_check: dt.date
    status: str | None = None
    notes: str | None = None


class ComplianceCheckUpdate(BaseModel):
    """Schema for reviewing a compliance check."""

    status: str
    notes: str | None = None


class ComplianceCheckResponse(BaseModel):
    """Schema for compliance check response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    site: str | None = None
    truck_id: int | None = None
    truck_number: str | None = None
    last_check: dt.date
    status: str
    notes: str | None = None


class ComplianceSummaryResponse(BaseModel):
    """Schema for compliance counts."""

    counts: dict[str, int]
    total: int
    verified_trips: int
    compliance_rate: float


# ============================================================================
# Report schemas
# ============================================================================


class BillingReportResponse(BaseModel):
    """Schema for billing totals over complete trips."""

    model_config = ConfigDict(from_attributes=True)

    trips: int
    distance_km: Decimal
    cost: Decimal
    excluded: int


class MonthSummaryResponse(BaseModel):
    """Schema for one month of trips."""

    model_config = ConfigDict(from_attributes=True)

    month: str
    trips: int
    distance_km: Decimal
    cost: Decimal


class DashboardResponse(BaseModel):
    """Schema for dashboard figures."""

    model_config = ConfigDict(from_attributes=True)

    active_trucks: int
    drivers_on_duty: int
    trips_today: int
    total_distance_km: Decimal
    payroll_cost: Decimal


# ============================================================================
# Sync schemas
# ============================================================================


class SyncRequest(BaseModel):
    """Schema for a single queued write."""

    type: str
    data: dict[str, Any]


class SyncBatchRequest(BaseModel):
    """Schema for a batch of queued writes of one type."""

    type: str
    data: list[dict[str, Any]]


class SyncResponse(BaseModel):
    """Schema for sync results."""

    success: bool
    count: int
    message: str
