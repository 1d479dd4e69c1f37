"""Truck compliance checks."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from haul_ops.models.base import Base, TimestampMixin

COMPLIANCE_STATUSES = ("Compliant", "Needs Review", "Non-Compliant")


class ComplianceCheck(Base, TimestampMixin):
    """Inspection record for a truck at a site."""

    __tablename__ = "compliance_checks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    site: Mapped[str | None] = mapped_column(String, nullable=True)
    truck_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("trucks.id", ondelete="SET NULL"),
        nullable=True,
    )
    truck_number: Mapped[str | None] = mapped_column(String, nullable=True)
    last_check: Mapped[dt.date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="Needs Review")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('Compliant', 'Needs Review', 'Non-Compliant')",
            name="compliance_status_check",
        ),
    )
