"""Type definitions for payroll and trip calculations."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class PayrollFormula(str, Enum):
    """Which formula produced a payroll total."""

    MANUAL = "manual"
    GPS = "gps"


@dataclass
class PayrollInputs:
    """Inputs for a single payroll computation.

    ``use_gps`` selects the GPS formula; otherwise the manual
    trip-count x price x volume formula is used.
    """

    trip_count: int = 0
    price_per_unit: Decimal = Decimal("0")
    volume: Decimal = Decimal("0")
    gps_distance_km: Decimal = Decimal("0")
    use_gps: bool = False


@dataclass
class PayrollResult:
    """Outcome of a payroll computation."""

    formula: PayrollFormula
    total: Decimal
    driver_pay: Decimal
    explanation: str


@dataclass
class PayrollDefaults:
    """Form defaults resolved from the selected site, truck and driver."""

    price_per_unit: Decimal
    unit_type: str
    volume: Decimal
    gps_distance_km: Decimal
    use_gps: bool


@dataclass
class TripCloseout:
    """Figures frozen onto a trip when it is completed."""

    end_time: str
    distance: Decimal
    duration: str
    cost: str
