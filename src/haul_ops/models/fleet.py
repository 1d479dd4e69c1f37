"""Sites, trucks and drivers."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from haul_ops.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from haul_ops.models.trips import Trip


class Site(Base, TimestampMixin):
    """Mining site with its configured haul rate."""

    __tablename__ = "sites"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="Active")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price_per_unit: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    unit_type: Mapped[str] = mapped_column(String, nullable=False, default="CBM")

    __table_args__ = (
        CheckConstraint("unit_type IN ('CBM', 'TON')", name="site_unit_type_check"),
    )


class Truck(Base, TimestampMixin):
    """Dump truck. Capacity is the rated volume before the net reduction."""

    __tablename__ = "trucks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    truck_number: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    capacity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    status: Mapped[str] = mapped_column(String, nullable=False, default="Active")

    drivers: Mapped[list[Driver]] = relationship(back_populates="truck")


class Driver(Base, TimestampMixin):
    """Truck driver."""

    __tablename__ = "drivers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="Off Duty")
    truck_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("trucks.id", ondelete="SET NULL"),
        nullable=True,
    )

    truck: Mapped[Truck | None] = relationship(back_populates="drivers", lazy="selectin")
    trips: Mapped[list[Trip]] = relationship(back_populates="driver")

    @property
    def has_truck_assignment(self) -> bool:
        """A trip can only start with both a truck id and a truck number."""
        return bool(self.truck_id and self.truck is not None and self.truck.truck_number)
