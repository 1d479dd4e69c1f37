"""Wire shapes for queued writes, one pydantic model per sync type."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SyncType(str, Enum):
    """Tag selecting which collection a queued write targets."""

    GPS = "gps"
    TRIP = "trip"
    PAYROLL = "payroll"
    BILLING = "billing"
    COMPLIANCE = "compliance"


class SyncPayload(BaseModel):
    """Base for sync payloads; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GPSPayload(SyncPayload):
    driver_id: int
    trip_id: int | None = None
    latitude: float
    longitude: float
    accuracy: float = 0.0
    speed: float | None = None
    heading: float | None = None
    timestamp: dt.datetime


class TripPayload(SyncPayload):
    date: dt.date | None = None
    driver_id: int
    driver_name: str | None = None
    truck_id: int | None = None
    truck_number: str | None = None
    receipt_number: str | None = Field(
        default=None,
        validation_alias=AliasChoices("receipt_number", "driver_receipt_number"),
    )
    start_time: str
    end_time: str | None = None
    distance: Decimal = Decimal("0")
    duration: str = "0h 00m"
    cost: str = "₱0"


class PayrollPayload(SyncPayload):
    driver_id: int | None = None
    driver_name: str | None = None
    truck_id: int | None = None
    truck_number: str | None = None
    date: dt.date
    trip_count: int = 0
    price_per_unit: Decimal = Decimal("0")
    volume: Decimal = Decimal("0")
    unit_type: str = "CBM"
    total_cost: Decimal = Decimal("0")
    payroll_cost: Decimal = Decimal("0")
    use_gps: bool = False
    site_id: int | None = None
    site_name: str | None = None


class BillingPayload(SyncPayload):
    date: dt.date
    site_id: int | None = None
    truck_id: int | None = None
    trip_count: int = 0
    price_per_unit: Decimal = Decimal("0")
    volume: Decimal = Decimal("0")
    unit_type: str = "CBM"
    total_cost: Decimal = Decimal("0")


class CompliancePayload(SyncPayload):
    site: str | None = None
    truck_id: int | None = None
    truck_number: str | None = None
    last_check: dt.date
    status: str = "Needs Review"
    notes: str | None = None


PAYLOAD_MODELS: dict[SyncType, type[SyncPayload]] = {
    SyncType.GPS: GPSPayload,
    SyncType.TRIP: TripPayload,
    SyncType.PAYROLL: PayrollPayload,
    SyncType.BILLING: BillingPayload,
    SyncType.COMPLIANCE: CompliancePayload,
}

# Types the batch endpoint accepts.
BATCH_TYPES = frozenset({SyncType.GPS, SyncType.TRIP, SyncType.PAYROLL})
