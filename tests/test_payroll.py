"""Tests for payroll formulas."""

from decimal import Decimal

import pytest

from haul_ops.calculators.payroll import (
    PayrollCalculator,
    driver_pay_for_trips,
    gps_total,
    manual_total,
    net_capacity,
    should_use_gps,
)
from haul_ops.calculators.types import PayrollFormula, PayrollInputs


class TestFormulas:
    """Test the two total formulas."""

    def test_manual_total(self):
        """5 trips x 281.69 per unit x 20.26 units."""
        total = manual_total(5, Decimal("281.69"), Decimal("20.26"))
        assert total == Decimal("28535.1970")

    def test_manual_total_zero_trips(self):
        assert manual_total(0, Decimal("281.69"), Decimal("20.26")) == Decimal("0")

    def test_gps_total(self):
        assert gps_total(Decimal("12.4")) == Decimal("620.0")

    def test_gps_total_from_float_has_no_artifacts(self):
        assert gps_total(0.1) == Decimal("5.0")

    def test_negative_inputs_pass_through(self):
        assert manual_total(-1, Decimal("100"), Decimal("2")) == Decimal("-200")
        assert gps_total(Decimal("-2")) == Decimal("-100")

    def test_net_capacity(self):
        assert net_capacity(Decimal("21.33")) == Decimal("20.26")
        assert net_capacity(20) == Decimal("19.00")

    def test_should_use_gps(self):
        assert should_use_gps(Decimal("0.01")) is True
        assert should_use_gps(Decimal("0")) is False
        assert should_use_gps(None) is False


class TestDriverPay:
    """Test trip-count pay tiers."""

    @pytest.mark.parametrize(
        "trips,expected",
        [
            (0, Decimal("0")),
            (1, Decimal("400")),
            (2, Decimal("800")),
            (3, Decimal("1500")),
            (4, Decimal("2500")),
            (6, Decimal("3750")),
        ],
    )
    def test_tiers(self, trips, expected):
        assert driver_pay_for_trips(trips) == expected


class TestPayrollCalculator:
    """Test formula selection."""

    def test_manual_formula(self):
        result = PayrollCalculator().calculate(
            PayrollInputs(
                trip_count=5,
                price_per_unit=Decimal("281.69"),
                volume=Decimal("20.26"),
            )
        )
        assert result.formula == PayrollFormula.MANUAL
        assert result.total == Decimal("28535.1970")
        assert result.driver_pay == Decimal("3125")

    def test_gps_formula_ignores_manual_inputs(self):
        result = PayrollCalculator().calculate(
            PayrollInputs(
                trip_count=5,
                price_per_unit=Decimal("281.69"),
                volume=Decimal("20.26"),
                gps_distance_km=Decimal("12.4"),
                use_gps=True,
            )
        )
        assert result.formula == PayrollFormula.GPS
        assert result.total == Decimal("620.0")
        assert "12.4 km" in result.explanation

    def test_custom_rate(self):
        result = PayrollCalculator(rate_per_km=Decimal("60")).calculate(
            PayrollInputs(gps_distance_km=Decimal("10"), use_gps=True)
        )
        assert result.total == Decimal("600")
