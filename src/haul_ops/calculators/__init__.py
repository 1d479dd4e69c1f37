"""Trip, distance and payroll calculations."""

from haul_ops.calculators.geo import haversine_km, path_distance_km
from haul_ops.calculators.payroll import PayrollCalculator
from haul_ops.calculators.rate_resolver import PayrollDefaultsResolver
from haul_ops.calculators.trip_metrics import close_out, receipt_number

__all__ = [
    "haversine_km",
    "path_distance_km",
    "PayrollCalculator",
    "PayrollDefaultsResolver",
    "close_out",
    "receipt_number",
]
