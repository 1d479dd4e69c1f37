"""API routes."""

from haul_ops.api.routes.compliance import router as compliance_router
from haul_ops.api.routes.health import router as health_router
from haul_ops.api.routes.payroll import router as payroll_router
from haul_ops.api.routes.reports import router as reports_router
from haul_ops.api.routes.sync import router as sync_router
from haul_ops.api.routes.trips import router as trips_router

__all__ = [
    "compliance_router",
    "health_router",
    "payroll_router",
    "reports_router",
    "sync_router",
    "trips_router",
]
