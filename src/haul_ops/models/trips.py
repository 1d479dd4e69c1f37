"""Trips and GPS location pings."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from haul_ops.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from haul_ops.models.fleet import Driver


class Trip(Base, TimestampMixin):
    """A single haul trip. ``end_time`` is null while the trip is active."""

    __tablename__ = "trips"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    driver_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("drivers.id", ondelete="CASCADE"),
        nullable=False,
    )
    driver_name: Mapped[str | None] = mapped_column(String, nullable=True)
    truck_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("trucks.id", ondelete="SET NULL"),
        nullable=True,
    )
    truck_number: Mapped[str | None] = mapped_column(String, nullable=True)
    receipt_number: Mapped[str | None] = mapped_column(String, nullable=True)
    start_time: Mapped[str] = mapped_column(String, nullable=False)
    end_time: Mapped[str | None] = mapped_column(String, nullable=True)
    distance: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    duration: Mapped[str] = mapped_column(String, nullable=False, default="0h 00m")
    cost: Mapped[str] = mapped_column(String, nullable=False, default="₱0")

    __table_args__ = (
        # At most one active trip per driver per day.
        Index(
            "trips_one_active_per_driver_day",
            "driver_id",
            "date",
            unique=True,
            sqlite_where=text("end_time IS NULL"),
            postgresql_where=text("end_time IS NULL"),
        ),
        Index("trips_truck_date_idx", "truck_id", "date"),
    )

    driver: Mapped[Driver] = relationship(back_populates="trips")

    @property
    def is_active(self) -> bool:
        return self.end_time is None


class DriverLocation(Base):
    """A GPS sample. Immutable once written."""

    __tablename__ = "driver_locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    driver_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("drivers.id", ondelete="CASCADE"),
        nullable=False,
    )
    trip_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("trips.id", ondelete="SET NULL"),
        nullable=True,
    )
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    accuracy: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    speed: Mapped[float | None] = mapped_column(Float, nullable=True)
    heading: Mapped[float | None] = mapped_column(Float, nullable=True)
    timestamp: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("driver_locations_trip_ts_idx", "trip_id", "timestamp"),
        Index("driver_locations_driver_ts_idx", "driver_id", "timestamp"),
    )
