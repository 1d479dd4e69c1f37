"""Payroll form defaults resolved from sites, trucks and GPS trips."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from haul_ops.calculators.payroll import CENTS, net_capacity, should_use_gps
from haul_ops.calculators.types import PayrollDefaults
from haul_ops.models import Site, Trip, Truck


class SiteNotFoundError(Exception):
    """Raised when the selected site does not exist."""

    def __init__(self, site_id: int):
        self.site_id = site_id
        super().__init__(f"Site {site_id} not found")


class TruckNotFoundError(Exception):
    """Raised when the selected truck does not exist."""

    def __init__(self, truck_id: int):
        self.truck_id = truck_id
        super().__init__(f"Truck {truck_id} not found")


class PayrollDefaultsResolver:
    """Resolves payroll defaults for a driver/site/truck selection.

    - price_per_unit and unit_type come from the site's configured rate
      (a site without a rate defaults to 0)
    - volume is the truck's net capacity (capacity x 0.95)
    - GPS distance is the driver's cumulative distance over completed trips
      in the date range; any positive distance pre-selects the GPS formula
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve_site_rate(self, site_id: int) -> tuple[Decimal, str]:
        site = await self.session.get(Site, site_id)
        if site is None:
            raise SiteNotFoundError(site_id)
        price = site.price_per_unit if site.price_per_unit is not None else Decimal("0")
        return price, site.unit_type or "CBM"

    async def resolve_volume(self, truck_id: int) -> Decimal:
        truck = await self.session.get(Truck, truck_id)
        if truck is None:
            raise TruckNotFoundError(truck_id)
        return net_capacity(truck.capacity)

    async def cumulative_gps_distance(
        self,
        driver_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Decimal:
        """Total distance over the driver's completed trips."""
        query = select(func.coalesce(func.sum(Trip.distance), 0)).where(
            Trip.driver_id == driver_id,
            Trip.end_time.is_not(None),
        )
        if start_date is not None:
            query = query.where(Trip.date >= start_date)
        if end_date is not None:
            query = query.where(Trip.date <= end_date)

        total = await self.session.scalar(query)
        return Decimal(str(total or 0)).quantize(CENTS)

    async def resolve(
        self,
        driver_id: int | None = None,
        site_id: int | None = None,
        truck_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> PayrollDefaults:
        price, unit_type = Decimal("0"), "CBM"
        if site_id is not None:
            price, unit_type = await self.resolve_site_rate(site_id)

        volume = Decimal("0")
        if truck_id is not None:
            volume = await self.resolve_volume(truck_id)

        distance = Decimal("0")
        if driver_id is not None:
            distance = await self.cumulative_gps_distance(driver_id, start_date, end_date)

        return PayrollDefaults(
            price_per_unit=price,
            unit_type=unit_type,
            volume=volume,
            gps_distance_km=distance,
            use_gps=should_use_gps(distance),
        )
