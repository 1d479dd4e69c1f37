"""Reporting API endpoints."""

import datetime as dt

from fastapi import APIRouter

from haul_ops.api.dependencies import DbSession, TripClock
from haul_ops.api.schemas import BillingReportResponse, DashboardResponse, MonthSummaryResponse
from haul_ops.services.reporting import ReportingService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/billing", response_model=BillingReportResponse)
async def get_billing_report(
    db: DbSession,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
) -> BillingReportResponse:
    """Billing totals over complete trips in the date range."""
    totals = await ReportingService(db).billing(start_date, end_date)
    return BillingReportResponse.model_validate(totals)


@router.get("/monthly", response_model=list[MonthSummaryResponse])
async def get_monthly_report(
    db: DbSession,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
) -> list[MonthSummaryResponse]:
    """Complete trips per calendar month."""
    months = await ReportingService(db).monthly(start_date, end_date)
    return [MonthSummaryResponse.model_validate(m) for m in months]


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(db: DbSession, clock: TripClock) -> DashboardResponse:
    """Today's fleet figures."""
    stats = await ReportingService(db).dashboard(clock().date())
    return DashboardResponse.model_validate(stats)
