"""Payroll and billing records."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from haul_ops.models.base import Base, TimestampMixin


class PayrollRecord(Base, TimestampMixin):
    """Driver payroll entry, manual or GPS derived."""

    __tablename__ = "payroll_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    driver_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("drivers.id", ondelete="SET NULL"),
        nullable=True,
    )
    driver_name: Mapped[str | None] = mapped_column(String, nullable=True)
    truck_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("trucks.id", ondelete="SET NULL"),
        nullable=True,
    )
    truck_number: Mapped[str | None] = mapped_column(String, nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    trip_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    volume: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    unit_type: Mapped[str] = mapped_column(String, nullable=False, default="CBM")
    total_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    payroll_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    use_gps: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    site_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("sites.id", ondelete="SET NULL"),
        nullable=True,
    )
    site_name: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("unit_type IN ('CBM', 'TON')", name="payroll_unit_type_check"),
    )


class BillingRecord(Base, TimestampMixin):
    """Client billing entry for hauled volume."""

    __tablename__ = "billing_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    site_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("sites.id", ondelete="SET NULL"),
        nullable=True,
    )
    truck_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("trucks.id", ondelete="SET NULL"),
        nullable=True,
    )
    trip_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    volume: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    unit_type: Mapped[str] = mapped_column(String, nullable=False, default="CBM")
    total_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
