"""Server side of the offline sync endpoints.

Each sync type has one payload model and one handler that turns a
validated payload into a row. Re-sent items are inserted again; the
queue guarantees at-least-once delivery, not exactly-once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from haul_ops.models import (
    Base,
    BillingRecord,
    ComplianceCheck,
    DriverLocation,
    PayrollRecord,
    Trip,
)
from haul_ops.sync.payloads import BATCH_TYPES, PAYLOAD_MODELS, SyncPayload, SyncType

logger = logging.getLogger(__name__)


class UnknownSyncTypeError(Exception):
    """Raised for a type tag with no registered handler."""

    def __init__(self, sync_type: str, reason: str | None = None):
        self.sync_type = sync_type
        msg = f"Unknown operation type: {sync_type}"
        if reason:
            msg = f"{reason}: {sync_type}"
        super().__init__(msg)


class SyncPayloadError(Exception):
    """Raised when a payload does not match its type's shape."""

    def __init__(self, sync_type: str, errors: list[dict[str, Any]]):
        self.sync_type = sync_type
        self.errors = errors
        super().__init__(f"Invalid {sync_type} payload: {errors}")


@dataclass(frozen=True)
class SyncHandler:
    """Payload model plus the row builder for one sync type."""

    payload_model: type[SyncPayload]
    build_row: Callable[[SyncPayload], Base]


def _row_builder(model: type[Base]) -> Callable[[SyncPayload], Base]:
    def build(payload: SyncPayload) -> Base:
        return model(**payload.model_dump())

    return build


HANDLERS: dict[SyncType, SyncHandler] = {
    SyncType.GPS: SyncHandler(PAYLOAD_MODELS[SyncType.GPS], _row_builder(DriverLocation)),
    SyncType.TRIP: SyncHandler(PAYLOAD_MODELS[SyncType.TRIP], _row_builder(Trip)),
    SyncType.PAYROLL: SyncHandler(PAYLOAD_MODELS[SyncType.PAYROLL], _row_builder(PayrollRecord)),
    SyncType.BILLING: SyncHandler(PAYLOAD_MODELS[SyncType.BILLING], _row_builder(BillingRecord)),
    SyncType.COMPLIANCE: SyncHandler(
        PAYLOAD_MODELS[SyncType.COMPLIANCE], _row_builder(ComplianceCheck)
    ),
}


def parse_sync_type(value: str) -> SyncType:
    try:
        return SyncType(value)
    except ValueError:
        raise UnknownSyncTypeError(value) from None


class SyncService:
    """Applies queued writes to the store."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _build(self, sync_type: SyncType, data: dict[str, Any]) -> Base:
        handler = HANDLERS.get(sync_type)
        if handler is None:
            raise UnknownSyncTypeError(sync_type.value)
        try:
            payload = handler.payload_model.model_validate(data)
        except ValidationError as e:
            raise SyncPayloadError(sync_type.value, e.errors(include_url=False)) from e
        return handler.build_row(payload)

    async def apply(self, sync_type: str, data: dict[str, Any]) -> int:
        """Insert one record. Returns the number of rows written."""
        kind = parse_sync_type(sync_type)
        row = self._build(kind, data)
        self.session.add(row)
        await self.session.flush()
        return 1

    async def apply_batch(self, sync_type: str, items: list[dict[str, Any]]) -> int:
        """Insert a batch in one flush; all rows are validated first."""
        kind = parse_sync_type(sync_type)
        if kind not in BATCH_TYPES:
            raise UnknownSyncTypeError(sync_type, reason="Batch sync not supported for type")

        rows = [self._build(kind, item) for item in items]
        self.session.add_all(rows)
        await self.session.flush()
        logger.info("Batch inserted %d %s records", len(rows), kind.value)
        return len(rows)
