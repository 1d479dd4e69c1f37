"""Haul ops services."""

from haul_ops.services.compliance_service import ComplianceService
from haul_ops.services.payroll_service import PayrollService
from haul_ops.services.reporting import ReportingService
from haul_ops.services.state_machine import InvalidTransitionError, TripAction, TripState, TripStateMachine
from haul_ops.services.sync_service import SyncService
from haul_ops.services.trip_service import TripLifecycleService

__all__ = [
    "ComplianceService",
    "PayrollService",
    "ReportingService",
    "InvalidTransitionError",
    "TripAction",
    "TripState",
    "TripStateMachine",
    "SyncService",
    "TripLifecycleService",
]
