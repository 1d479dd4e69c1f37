"""Payroll and billing formulas.

Two interchangeable formulas produce a total:

- manual: trip_count x price_per_unit x volume
- GPS: cumulative trip distance (km) x 50

Negative inputs are passed through as-is.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from haul_ops.calculators.types import PayrollFormula, PayrollInputs, PayrollResult

RATE_PER_KM = Decimal("50")
NET_CAPACITY_FACTOR = Decimal("0.95")
CENTS = Decimal("0.01")
CURRENCY_SYMBOL = "₱"

# (max trips in tier, rate per trip); anything above the last tier pays TOP_TIER_RATE
DRIVER_PAY_TIERS: tuple[tuple[int, Decimal], ...] = (
    (2, Decimal("400")),
    (3, Decimal("500")),
)
TOP_TIER_RATE = Decimal("625")

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def to_decimal(value: Decimal | float | int | str | None) -> Decimal:
    """Coerce a number to Decimal without float artifacts."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def net_capacity(capacity: Decimal | float | int) -> Decimal:
    """Rated truck capacity less the fixed 5% reduction, to 2 places."""
    return (to_decimal(capacity) * NET_CAPACITY_FACTOR).quantize(CENTS, rounding=ROUND_HALF_UP)


def manual_total(
    trip_count: int,
    price_per_unit: Decimal | float | int,
    volume: Decimal | float | int,
) -> Decimal:
    return to_decimal(trip_count) * to_decimal(price_per_unit) * to_decimal(volume)


def gps_total(distance_km: Decimal | float | int, rate_per_km: Decimal = RATE_PER_KM) -> Decimal:
    return to_decimal(distance_km) * rate_per_km


def driver_pay_for_trips(trip_count: int) -> Decimal:
    """Driver pay by trip-count tier: 1-2 trips x400, 3 x500, 4+ x625."""
    if trip_count <= 0:
        return Decimal("0")
    for max_trips, rate in DRIVER_PAY_TIERS:
        if trip_count <= max_trips:
            return rate * trip_count
    return TOP_TIER_RATE * trip_count


def should_use_gps(gps_distance_km: Decimal | float | int | None) -> bool:
    """GPS formula is pre-selected once any GPS distance exists."""
    return to_decimal(gps_distance_km) > 0


def format_peso(amount: Decimal | float | int) -> str:
    """Render an amount as pesos with thousands separators.

    Up to two fraction digits, trailing zeros dropped: 620 -> "₱620",
    1234.5 -> "₱1,234.5".
    """
    value = to_decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)
    text = f"{value:,.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return f"{CURRENCY_SYMBOL}{text}"


def parse_peso(text: str | None) -> Decimal:
    """Inverse of format_peso. Unparsable input counts as zero."""
    if not text:
        return Decimal("0")
    try:
        return Decimal(_NON_NUMERIC.sub("", text) or "0")
    except InvalidOperation:
        return Decimal("0")


class PayrollCalculator:
    """Selects and applies one of the payroll formulas."""

    def __init__(self, rate_per_km: Decimal = RATE_PER_KM):
        self.rate_per_km = rate_per_km

    def calculate(self, inputs: PayrollInputs) -> PayrollResult:
        driver_pay = driver_pay_for_trips(inputs.trip_count)

        if inputs.use_gps:
            total = gps_total(inputs.gps_distance_km, self.rate_per_km)
            return PayrollResult(
                formula=PayrollFormula.GPS,
                total=total,
                driver_pay=driver_pay,
                explanation=f"{inputs.gps_distance_km} km x {self.rate_per_km} per km",
            )

        total = manual_total(inputs.trip_count, inputs.price_per_unit, inputs.volume)
        return PayrollResult(
            formula=PayrollFormula.MANUAL,
            total=total,
            driver_pay=driver_pay,
            explanation=(
                f"{inputs.trip_count} trips x {inputs.price_per_unit} per unit x {inputs.volume}"
            ),
        )
