"""Tests for reporting aggregations."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from haul_ops.models import ComplianceCheck, Driver, Trip, Truck
from haul_ops.services.reporting import (
    ReportingService,
    billing_totals,
    compliance_summary,
    dashboard_stats,
    is_trip_complete,
    monthly_summary,
    verified_trip_count,
)

from .conftest import TODAY


def trip_row(**overrides):
    row = {
        "truck_number": "T-007",
        "date": "2026-03-14",
        "driver_name": "Juan Dela Cruz",
        "receipt_number": "RCP-007-001",
        "distance": "12.40",
        "cost": "₱620",
    }
    row.update(overrides)
    return row


class TestTripCompleteness:
    """Test which trips count as verified."""

    def test_complete_trip(self):
        assert is_trip_complete(trip_row()) is True

    @pytest.mark.parametrize("field", ["truck_number", "date", "driver_name", "receipt_number"])
    def test_missing_field(self, field):
        assert is_trip_complete(trip_row(**{field: None})) is False

    def test_blank_field(self):
        assert is_trip_complete(trip_row(receipt_number="  ")) is False

    def test_verified_count(self):
        trips = [trip_row(), trip_row(driver_name=""), trip_row()]
        assert verified_trip_count(trips) == 2


class TestAggregations:
    """Test billing, monthly and compliance rollups."""

    def test_billing_totals_exclude_incomplete(self):
        trips = [
            trip_row(),
            trip_row(distance="1.11", cost="₱55.5"),
            trip_row(receipt_number=None, distance="100", cost="₱5,000"),
        ]

        totals = billing_totals(trips)

        assert totals.trips == 2
        assert totals.excluded == 1
        assert totals.distance_km == Decimal("13.51")
        assert totals.cost == Decimal("675.5")

    def test_monthly_summary(self):
        trips = [
            trip_row(date="2026-02-27"),
            trip_row(date="2026-03-01"),
            trip_row(date="2026-03-14", cost="₱1,234.5"),
            trip_row(date="2026-03-20", truck_number=None),
        ]

        months = monthly_summary(trips)

        assert [m.month for m in months] == ["2026-02", "2026-03"]
        assert months[1].trips == 2
        assert months[1].cost == Decimal("1854.5")

    def test_compliance_summary(self):
        checks = [
            {"status": "Compliant"},
            {"status": "Compliant"},
            {"status": "Needs Review"},
            {"status": "Non-Compliant"},
        ]

        summary = compliance_summary(checks, [trip_row()])

        assert summary.counts == {"Compliant": 2, "Needs Review": 1, "Non-Compliant": 1}
        assert summary.total == 4
        assert summary.verified_trips == 1
        assert summary.compliance_rate == 0.5

    def test_compliance_rate_empty(self):
        assert compliance_summary([]).compliance_rate == 0.0

    def test_dashboard_stats_counts_every_trip(self):
        stats = dashboard_stats(2, 3, [trip_row(), trip_row(receipt_number=None, distance="1.60", cost="₱80")])
        assert stats.active_trucks == 2
        assert stats.drivers_on_duty == 3
        assert stats.trips_today == 2
        assert stats.total_distance_km == Decimal("14.00")
        assert stats.payroll_cost == Decimal("700")


@pytest.mark.asyncio
class TestReportingService:
    """Test report queries against the store."""

    async def test_dashboard(self, session: AsyncSession, test_driver: Driver, test_truck: Truck):
        session.add_all(
            [
                Trip(
                    date=TODAY,
                    driver_id=test_driver.id,
                    driver_name=test_driver.name,
                    truck_id=test_truck.id,
                    truck_number=test_truck.truck_number,
                    receipt_number="RCP-007-001",
                    start_time="9:00 AM",
                    end_time="9:40 AM",
                    distance=Decimal("12.40"),
                    duration="0h 40m",
                    cost="₱620",
                ),
                Trip(
                    date=date(2026, 3, 13),
                    driver_id=test_driver.id,
                    start_time="9:00 AM",
                    end_time="9:10 AM",
                    distance=Decimal("2.00"),
                    cost="₱100",
                ),
            ]
        )
        await session.flush()

        stats = await ReportingService(session).dashboard(TODAY)

        assert stats.active_trucks == 1
        assert stats.drivers_on_duty == 1
        assert stats.trips_today == 1
        assert stats.total_distance_km == Decimal("12.40")
        assert stats.payroll_cost == Decimal("620")

    async def test_billing_over_date_range(
        self, session: AsyncSession, test_driver: Driver, test_truck: Truck
    ):
        for day, receipt in ((date(2026, 3, 1), "RCP-007-001"), (date(2026, 4, 1), None)):
            session.add(
                Trip(
                    date=day,
                    driver_id=test_driver.id,
                    driver_name=test_driver.name,
                    truck_id=test_truck.id,
                    truck_number=test_truck.truck_number,
                    receipt_number=receipt,
                    start_time="9:00 AM",
                    end_time="10:00 AM",
                    distance=Decimal("5.00"),
                    cost="₱250",
                )
            )
        await session.flush()

        service = ReportingService(session)
        march = await service.billing(date(2026, 3, 1), date(2026, 3, 31))
        everything = await service.billing()

        assert march.trips == 1
        assert march.cost == Decimal("250")
        assert everything.trips == 1
        assert everything.excluded == 1

    async def test_compliance_counts(self, session: AsyncSession):
        session.add_all(
            [
                ComplianceCheck(truck_number="T-007", last_check=TODAY, status="Compliant"),
                ComplianceCheck(truck_number="T-008", last_check=TODAY, status="Needs Review"),
            ]
        )
        await session.flush()

        summary = await ReportingService(session).compliance()

        assert summary.counts["Compliant"] == 1
        assert summary.counts["Needs Review"] == 1
        assert summary.counts["Non-Compliant"] == 0
