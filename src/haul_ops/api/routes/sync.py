"""Offline sync endpoints.

Clients replay queued writes here. Each request inserts rows; nothing is
deduplicated, so a write re-sent after a lost response is stored twice.
"""

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from haul_ops.api.dependencies import DbSession
from haul_ops.api.schemas import ErrorResponse, SyncBatchRequest, SyncRequest, SyncResponse
from haul_ops.services.sync_service import SyncPayloadError, SyncService, UnknownSyncTypeError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])

ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def _store_message(error: SQLAlchemyError) -> str:
    return str(getattr(error, "orig", None) or error)


@router.post("", response_model=SyncResponse, responses=ERROR_RESPONSES)
async def sync_record(db: DbSession, payload: SyncRequest) -> SyncResponse:
    """Insert one queued write."""
    try:
        count = await SyncService(db).apply(payload.type, payload.data)
        await db.commit()
    except (UnknownSyncTypeError, SyncPayloadError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Sync of %s failed", payload.type)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_store_message(e),
        )

    return SyncResponse(success=True, count=count, message=f"Synced {payload.type} record")


@router.post("/batch", response_model=SyncResponse, responses=ERROR_RESPONSES)
async def sync_batch(db: DbSession, payload: SyncBatchRequest) -> SyncResponse:
    """Insert a batch of queued writes of one type."""
    try:
        count = await SyncService(db).apply_batch(payload.type, payload.data)
        await db.commit()
    except (UnknownSyncTypeError, SyncPayloadError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Batch sync of %d %s records failed", len(payload.data), payload.type)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_store_message(e),
        )

    return SyncResponse(
        success=True,
        count=count,
        message=f"Successfully inserted {count} {payload.type} records",
    )
