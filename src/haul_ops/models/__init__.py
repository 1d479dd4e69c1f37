"""ORM models."""

from haul_ops.models.base import Base, TimestampMixin
from haul_ops.models.compliance import COMPLIANCE_STATUSES, ComplianceCheck
from haul_ops.models.fleet import Driver, Site, Truck
from haul_ops.models.payroll import BillingRecord, PayrollRecord
from haul_ops.models.trips import DriverLocation, Trip

__all__ = [
    "Base",
    "TimestampMixin",
    "COMPLIANCE_STATUSES",
    "ComplianceCheck",
    "Driver",
    "Site",
    "Truck",
    "BillingRecord",
    "PayrollRecord",
    "DriverLocation",
    "Trip",
]
