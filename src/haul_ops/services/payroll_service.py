"""Payroll record creation."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from haul_ops.calculators.payroll import CENTS, PayrollCalculator, to_decimal
from haul_ops.calculators.rate_resolver import PayrollDefaultsResolver, TruckNotFoundError
from haul_ops.calculators.types import PayrollInputs, PayrollResult
from haul_ops.models import Driver, PayrollRecord, Site, Truck
from haul_ops.services.trip_service import DriverNotFoundError

logger = logging.getLogger(__name__)


class PayrollValidationError(Exception):
    """Raised when a payroll entry is missing required selections."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


class PayrollService:
    """Creates payroll records from manual entry or GPS distance.

    Unset price, volume and GPS distance fall back to the defaults resolved
    for the selected site, truck and driver. When ``use_gps`` is not given,
    the GPS formula is used if the driver has any GPS distance.
    """

    def __init__(self, session: AsyncSession, calculator: PayrollCalculator | None = None):
        self.session = session
        self.calculator = calculator or PayrollCalculator()
        self.resolver = PayrollDefaultsResolver(session)

    async def preview(
        self,
        *,
        driver_id: int | None = None,
        truck_id: int | None = None,
        site_id: int | None = None,
        trip_count: int = 0,
        price_per_unit: Decimal | None = None,
        volume: Decimal | None = None,
        gps_distance_km: Decimal | None = None,
        use_gps: bool | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> tuple[PayrollInputs, PayrollResult, str]:
        """Resolve defaults and compute, without persisting."""
        defaults = await self.resolver.resolve(
            driver_id=driver_id,
            site_id=site_id,
            truck_id=truck_id,
            start_date=start_date,
            end_date=end_date,
        )
        inputs = PayrollInputs(
            trip_count=trip_count,
            price_per_unit=to_decimal(price_per_unit) if price_per_unit is not None else defaults.price_per_unit,
            volume=to_decimal(volume) if volume is not None else defaults.volume,
            gps_distance_km=(
                to_decimal(gps_distance_km) if gps_distance_km is not None else defaults.gps_distance_km
            ),
            use_gps=defaults.use_gps if use_gps is None else use_gps,
        )
        return inputs, self.calculator.calculate(inputs), defaults.unit_type

    async def create_record(
        self,
        *,
        driver_id: int | None,
        truck_id: int | None,
        record_date: date,
        trip_count: int = 0,
        site_id: int | None = None,
        price_per_unit: Decimal | None = None,
        volume: Decimal | None = None,
        gps_distance_km: Decimal | None = None,
        use_gps: bool | None = None,
        unit_type: str | None = None,
    ) -> PayrollRecord:
        """Validate, compute and persist a payroll record."""
        errors: list[str] = []
        if driver_id is None:
            errors.append("Driver is required")
        if truck_id is None:
            errors.append("Truck is required")
        if trip_count <= 0 and not use_gps:
            errors.append("Number of trips is required")
        if errors:
            raise PayrollValidationError(errors)

        driver = await self.session.get(Driver, driver_id)
        if driver is None:
            raise DriverNotFoundError(driver_id)
        truck = await self.session.get(Truck, truck_id)
        if truck is None:
            raise TruckNotFoundError(truck_id)
        site = await self.session.get(Site, site_id) if site_id is not None else None

        inputs, result, default_unit = await self.preview(
            driver_id=driver_id,
            truck_id=truck_id,
            site_id=site_id,
            trip_count=trip_count,
            price_per_unit=price_per_unit,
            volume=volume,
            gps_distance_km=gps_distance_km,
            use_gps=use_gps,
        )

        record = PayrollRecord(
            driver_id=driver.id,
            driver_name=driver.name,
            truck_id=truck.id,
            truck_number=truck.truck_number,
            date=record_date,
            trip_count=trip_count,
            price_per_unit=inputs.price_per_unit,
            volume=inputs.volume,
            unit_type=unit_type or default_unit,
            total_cost=result.total.quantize(CENTS),
            payroll_cost=result.driver_pay.quantize(CENTS),
            use_gps=inputs.use_gps,
            site_id=site.id if site else None,
            site_name=site.name if site else None,
        )
        self.session.add(record)
        await self.session.flush()

        logger.info(
            "Payroll record %s for driver %s: %s formula, total %s",
            record.id,
            driver.id,
            result.formula.value,
            record.total_cost,
        )
        return record

    async def list_records(
        self,
        driver_id: int | None = None,
        record_date: date | None = None,
    ) -> list[PayrollRecord]:
        query = select(PayrollRecord)
        if driver_id is not None:
            query = query.where(PayrollRecord.driver_id == driver_id)
        if record_date is not None:
            query = query.where(PayrollRecord.date == record_date)
        result = await self.session.execute(query.order_by(PayrollRecord.id.desc()))
        return list(result.scalars().all())
