"""Read-side aggregation for dashboards, billing and compliance reports.

Only complete trips count towards billing and verified-trip figures. A
trip is complete when it has a truck number, a date, a driver name and a
receipt number.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from haul_ops.calculators.payroll import parse_peso, to_decimal
from haul_ops.models import COMPLIANCE_STATUSES, ComplianceCheck, Driver, Trip, Truck

REQUIRED_TRIP_FIELDS = ("truck_number", "date", "driver_name", "receipt_number")


def _field(trip: Any, name: str) -> Any:
    if isinstance(trip, dict):
        return trip.get(name)
    return getattr(trip, name, None)


def is_trip_complete(trip: Any) -> bool:
    """True when every required field is present and non-blank."""
    for name in REQUIRED_TRIP_FIELDS:
        value = _field(trip, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            return False
    return True


def verified_trip_count(trips: Iterable[Any]) -> int:
    return sum(1 for trip in trips if is_trip_complete(trip))


@dataclass
class BillingTotals:
    """Totals over complete trips."""

    trips: int = 0
    distance_km: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")
    excluded: int = 0


def billing_totals(trips: Iterable[Any]) -> BillingTotals:
    totals = BillingTotals()
    for trip in trips:
        if not is_trip_complete(trip):
            totals.excluded += 1
            continue
        totals.trips += 1
        totals.distance_km += to_decimal(_field(trip, "distance") or 0)
        totals.cost += parse_peso(_field(trip, "cost"))
    return totals


@dataclass
class MonthSummary:
    month: str  # YYYY-MM
    trips: int = 0
    distance_km: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")


def monthly_summary(trips: Iterable[Any]) -> list[MonthSummary]:
    """Complete trips grouped by calendar month, oldest first."""
    months: dict[str, MonthSummary] = {}
    for trip in trips:
        if not is_trip_complete(trip):
            continue
        trip_date = _field(trip, "date")
        if isinstance(trip_date, str):
            trip_date = date.fromisoformat(trip_date)
        key = f"{trip_date.year:04d}-{trip_date.month:02d}"
        summary = months.setdefault(key, MonthSummary(month=key))
        summary.trips += 1
        summary.distance_km += to_decimal(_field(trip, "distance") or 0)
        summary.cost += parse_peso(_field(trip, "cost"))
    return [months[key] for key in sorted(months)]


@dataclass
class ComplianceSummary:
    counts: dict[str, int] = field(default_factory=dict)
    total: int = 0
    verified_trips: int = 0

    @property
    def compliance_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.counts.get("Compliant", 0) / self.total


def compliance_summary(checks: Iterable[Any], trips: Iterable[Any] = ()) -> ComplianceSummary:
    counter = Counter(_field(check, "status") for check in checks)
    counts = {status: counter.get(status, 0) for status in COMPLIANCE_STATUSES}
    return ComplianceSummary(
        counts=counts,
        total=sum(counts.values()),
        verified_trips=verified_trip_count(trips),
    )


@dataclass
class DashboardStats:
    active_trucks: int
    drivers_on_duty: int
    trips_today: int
    total_distance_km: Decimal
    payroll_cost: Decimal


def dashboard_stats(active_trucks: int, drivers_on_duty: int, todays_trips: Iterable[Any]) -> DashboardStats:
    """Fleet figures for one day. Distance and cost cover all of the day's trips."""
    trips = list(todays_trips)
    return DashboardStats(
        active_trucks=active_trucks,
        drivers_on_duty=drivers_on_duty,
        trips_today=len(trips),
        total_distance_km=sum((to_decimal(_field(t, "distance") or 0) for t in trips), Decimal("0")),
        payroll_cost=sum((parse_peso(_field(t, "cost")) for t in trips), Decimal("0")),
    )


class ReportingService:
    """Loads rows from the store and applies the aggregations above."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _trips(self, start: date | None = None, end: date | None = None) -> list[Trip]:
        query = select(Trip)
        if start is not None:
            query = query.where(Trip.date >= start)
        if end is not None:
            query = query.where(Trip.date <= end)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def billing(self, start: date | None = None, end: date | None = None) -> BillingTotals:
        return billing_totals(await self._trips(start, end))

    async def monthly(self, start: date | None = None, end: date | None = None) -> list[MonthSummary]:
        return monthly_summary(await self._trips(start, end))

    async def compliance(self) -> ComplianceSummary:
        result = await self.session.execute(select(ComplianceCheck))
        return compliance_summary(result.scalars().all(), await self._trips())

    async def dashboard(self, today: date) -> DashboardStats:
        active_trucks = await self.session.scalar(
            select(func.count()).select_from(Truck).where(Truck.status == "Active")
        )
        on_duty = await self.session.scalar(
            select(func.count()).select_from(Driver).where(Driver.status == "On Duty")
        )
        return dashboard_stats(active_trucks or 0, on_duty or 0, await self._trips(today, today))
