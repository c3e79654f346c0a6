"""Sheet sync service: mirrors registrations into the event's spreadsheet.

Notes
- A registration keeps the sheet row it was first written to
  (``sheet_row_number``); later syncs overwrite that row instead of appending.
- Sync Record counters are changed with single UPDATE statements so
  concurrent syncs of different registrations don't lose increments.
- Failures are recorded on the Sync Record and re-raised as ``SyncFailure``;
  callers decide whether to retry.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from sqlalchemy import case, func, update
from sqlalchemy.orm import aliased
from sqlmodel import Session, col, select

from regdesk.backends.sheets_client import SheetsClient
from regdesk.errors import SyncFailure
from regdesk.models.form_field import FormFieldDefinition
from regdesk.models.registration import Registration
from regdesk.models.sheet_sync import SheetSync, SyncStatus
from regdesk.services.form_schema_service import FormSchemaService
from regdesk.services.registration_service import as_utc

logger = logging.getLogger(__name__)

LIST_DELIMITER = ", "


@dataclass
class BatchSyncResult:
    attempted: int
    succeeded: int
    failed: int

    @property
    def status(self) -> str:
        """'success' when every row synced, 'partial' otherwise"""
        return "success" if self.failed == 0 else "partial"


def format_cell(value: Any) -> Any:
    """Sheet cell value for a submitted answer"""
    if value is None:
        return ""
    if isinstance(value, list):
        return LIST_DELIMITER.join(str(item) for item in value)
    return value


def build_row(
    registration: Registration, fields: Sequence[FormFieldDefinition]
) -> List[Any]:
    """
    Ordered sheet row for a registration:
    [registration id, submitted at, status, <one cell per field>, last updated]
    """
    form_data = registration.form_data or {}
    row: List[Any] = [
        registration.registration_id,
        as_utc(registration.submitted_at).isoformat(),
        registration.status.value,
    ]
    row.extend(format_cell(form_data.get(f.id)) for f in fields)
    row.append(as_utc(registration.updated_at).isoformat())
    return row


class SheetSyncService:
    """Service for reconciling registrations into the external sheet"""

    def __init__(
        self,
        db_session: Session,
        sheets_client: SheetsClient,
        batch_delay_seconds: float = 0.1,
    ):
        self.db = db_session
        self.sheets_client = sheets_client
        self.batch_delay_seconds = batch_delay_seconds

    def get_sync_record(self, event_id: uuid.UUID) -> Optional[SheetSync]:
        stmt = select(SheetSync).where(SheetSync.event_id == event_id)
        return self.db.exec(stmt).first()

    async def sync_one(self, event_id: uuid.UUID, registration: Registration) -> int:
        """
        Write a registration to its sheet row.

        Args:
            event_id: UUID of the event owning the sheet
            registration: Persisted registration to mirror

        Returns:
            The 1-based sheet row the registration was written to

        Raises:
            SyncFailure: If the event has no sheet, no active form, or the write failed
        """
        record = self.get_sync_record(event_id)
        if not record:
            logger.warning(f"No sheet configured for event {event_id}")
            raise SyncFailure("No sheet configured for event", str(event_id))

        sheet_id = record.sheet_id
        registration_pk = registration.id
        label = registration.registration_id
        status = registration.status.value
        try:
            form = FormSchemaService(self.db).get_active_form(event_id)
            if not form:
                raise SyncFailure("Registration form not found", str(event_id))

            row = build_row(registration, form.field_definitions())
            row_number = await self._resolve_row_number(sheet_id, registration)
            await self.sheets_client.write_row(sheet_id, row_number, row)
            await self.sheets_client.highlight_row(sheet_id, row_number, status)
        except Exception as e:
            self.db.rollback()
            message = str(e) or e.__class__.__name__
            self._record_failure(event_id, message)
            logger.error(
                f"Failed to sync registration {label} "
                f"to sheet {sheet_id}: {message}"
            )
            if isinstance(e, SyncFailure):
                raise
            raise SyncFailure(message, str(event_id)) from e

        now = datetime.now(timezone.utc)
        self.db.exec(
            update(SheetSync)
            .where(SheetSync.event_id == event_id)
            .values(
                last_sync_status=SyncStatus.SUCCESS,
                last_synced_at=now,
                total_rows_synced=SheetSync.total_rows_synced + 1,
                updated_at=now,
            )
        )
        self.db.exec(
            update(Registration)
            .where(Registration.id == registration_pk)
            .values(last_synced_at=now)
        )
        self.db.commit()

        logger.info(
            f"Synced registration {label} to row {row_number} "
            f"of sheet {sheet_id}"
        )
        return row_number

    async def _resolve_row_number(
        self, sheet_id: str, registration: Registration
    ) -> int:
        """Reuse the stored row pointer, else append and persist the new pointer"""
        registration_pk = registration.id
        event_id = registration.event_id
        current = self._stored_row_number(registration_pk)
        if current:
            return current

        filled_rows = await self.sheets_client.read_column_length(sheet_id)

        # Rows claimed by earlier failed writes are still empty in the sheet,
        # so the next row is past both the sheet and every stored pointer
        peer = aliased(Registration)
        highest = (
            select(func.coalesce(func.max(peer.sheet_row_number), 0))
            .where(peer.event_id == event_id)
            .scalar_subquery()
        )
        next_row = case((highest > filled_rows, highest + 1), else_=filled_rows + 1)

        # Only claim a row if no concurrent sync stored a pointer meanwhile
        result = self.db.exec(
            update(Registration)
            .where(
                Registration.id == registration_pk,
                col(Registration.sheet_row_number).is_(None),
            )
            .values(sheet_row_number=next_row)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        if result.rowcount != 1:
            logger.debug(
                f"Row pointer for {registration_pk} was assigned by a concurrent sync"
            )

        current = self._stored_row_number(registration_pk)
        if current is None:
            raise SyncFailure("Registration no longer exists")
        return current

    def _stored_row_number(self, registration_pk: uuid.UUID) -> Optional[int]:
        stmt = select(Registration.sheet_row_number).where(
            Registration.id == registration_pk
        )
        return self.db.exec(stmt).first()

    def _record_failure(self, event_id: uuid.UUID, message: str) -> None:
        now = datetime.now(timezone.utc)
        try:
            self.db.exec(
                update(SheetSync)
                .where(SheetSync.event_id == event_id)
                .values(
                    last_sync_status=SyncStatus.FAILED,
                    last_sync_error=message,
                    failed_sync_count=SheetSync.failed_sync_count + 1,
                    updated_at=now,
                )
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to record sync failure for event {event_id}: {e}")

    async def sync_all(self, event_id: uuid.UUID) -> BatchSyncResult:
        """
        Sync every registration of an event in submission order.

        Individual failures are counted, never raised. A short pause between
        rows keeps the batch under the Sheets API rate limits.
        """
        stmt = (
            select(Registration)
            .where(Registration.event_id == event_id)
            .order_by(col(Registration.submitted_at).asc())
        )
        registrations = list(self.db.exec(stmt).all())

        succeeded = 0
        failed = 0
        last_error: Optional[str] = None

        for index, registration in enumerate(registrations):
            if index and self.batch_delay_seconds > 0:
                await asyncio.sleep(self.batch_delay_seconds)
            try:
                await self.sync_one(event_id, registration)
                succeeded += 1
            except SyncFailure as e:
                failed += 1
                last_error = e.message
                logger.warning(
                    f"Batch sync skipped registration "
                    f"{registration.registration_id}: {e.message}"
                )

        if failed:
            # A later success must not hide failures in the same batch
            now = datetime.now(timezone.utc)
            self.db.exec(
                update(SheetSync)
                .where(SheetSync.event_id == event_id)
                .values(
                    last_sync_status=SyncStatus.FAILED,
                    last_sync_error=last_error,
                    updated_at=now,
                )
            )
            self.db.commit()

        result = BatchSyncResult(
            attempted=len(registrations), succeeded=succeeded, failed=failed
        )
        logger.info(
            f"Batch sync for event {event_id}: {result.succeeded}/{result.attempted} "
            f"synced, {result.failed} failed"
        )
        return result
