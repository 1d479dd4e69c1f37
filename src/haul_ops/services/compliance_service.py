"""Compliance check creation and review."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from haul_ops.models import COMPLIANCE_STATUSES, ComplianceCheck

logger = logging.getLogger(__name__)

NEEDS_REVIEW = "Needs Review"


class ComplianceCheckNotFoundError(Exception):
    """Raised when a compliance check does not exist."""

    def __init__(self, check_id: int):
        self.check_id = check_id
        super().__init__(f"Compliance check {check_id} not found")


class InvalidComplianceStatusError(ValueError):
    """Raised for a status outside Compliant / Needs Review / Non-Compliant."""

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Invalid compliance status '{status}'")


def _validate_status(status: str) -> str:
    if status not in COMPLIANCE_STATUSES:
        raise InvalidComplianceStatusError(status)
    return status


class ComplianceService:
    """Drivers submit checks for review; admins set any status."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_check(
        self,
        *,
        truck_id: int | None,
        truck_number: str | None,
        last_check: date,
        site: str | None = None,
        status: str | None = None,
        notes: str | None = None,
        created_by_admin: bool = False,
    ) -> ComplianceCheck:
        if created_by_admin:
            status = _validate_status(status or NEEDS_REVIEW)
        else:
            status = NEEDS_REVIEW

        check = ComplianceCheck(
            site=site,
            truck_id=truck_id,
            truck_number=truck_number,
            last_check=last_check,
            status=status,
            notes=notes,
        )
        self.session.add(check)
        await self.session.flush()
        return check

    async def update_status(
        self,
        check_id: int,
        status: str,
        notes: str | None = None,
    ) -> ComplianceCheck:
        check = await self.session.get(ComplianceCheck, check_id)
        if check is None:
            raise ComplianceCheckNotFoundError(check_id)

        old_status = check.status
        check.status = _validate_status(status)
        if notes is not None:
            check.notes = notes
        await self.session.flush()

        logger.info("Compliance check %s: %s -> %s", check_id, old_status, check.status)
        return check

    async def list_checks(self, status: str | None = None) -> list[ComplianceCheck]:
        query = select(ComplianceCheck)
        if status is not None:
            query = query.where(ComplianceCheck.status == status)
        result = await self.session.execute(query.order_by(ComplianceCheck.last_check.desc()))
        return list(result.scalars().all())
