"""Compliance check API endpoints."""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, Query, status

from haul_ops.api.dependencies import DbSession
from haul_ops.api.schemas import (
    ComplianceCheckCreate,
    ComplianceCheckResponse,
    ComplianceCheckUpdate,
    ComplianceSummaryResponse,
    ErrorResponse,
)
from haul_ops.services.compliance_service import (
    ComplianceCheckNotFoundError,
    ComplianceService,
    InvalidComplianceStatusError,
)
from haul_ops.services.reporting import ReportingService

router = APIRouter(prefix="/compliance", tags=["compliance"])


@router.post(
    "/checks",
    response_model=ComplianceCheckResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def create_compliance_check(
    db: DbSession,
    payload: ComplianceCheckCreate,
    admin: bool = False,
) -> ComplianceCheckResponse:
    """Submit a compliance check. Driver submissions start as Needs Review."""
    try:
        check = await ComplianceService(db).create_check(
            **payload.model_dump(),
            created_by_admin=admin,
        )
    except InvalidComplianceStatusError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    await db.commit()
    return ComplianceCheckResponse.model_validate(check)


@router.get("/checks", response_model=list[ComplianceCheckResponse])
async def list_compliance_checks(
    db: DbSession,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[ComplianceCheckResponse]:
    """List compliance checks, most recent first."""
    checks = await ComplianceService(db).list_checks(status=status_filter)
    return [ComplianceCheckResponse.model_validate(c) for c in checks]


@router.patch(
    "/checks/{check_id}",
    response_model=ComplianceCheckResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def update_compliance_check(
    db: DbSession,
    check_id: Annotated[int, Path()],
    payload: ComplianceCheckUpdate,
) -> ComplianceCheckResponse:
    """Review a compliance check."""
    try:
        check = await ComplianceService(db).update_status(check_id, payload.status, payload.notes)
    except ComplianceCheckNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidComplianceStatusError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    await db.commit()
    return ComplianceCheckResponse.model_validate(check)


@router.get("/summary", response_model=ComplianceSummaryResponse)
async def get_compliance_summary(db: DbSession) -> ComplianceSummaryResponse:
    """Counts of checks per status plus verified trips."""
    summary = await ReportingService(db).compliance()
    return ComplianceSummaryResponse(
        counts=summary.counts,
        total=summary.total,
        verified_trips=summary.verified_trips,
        compliance_rate=summary.compliance_rate,
    )
