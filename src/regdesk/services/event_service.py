"""Event service: lifecycle transitions that touch the registration pipeline"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Session

from regdesk.backends.sheets_client import SheetsClient
from regdesk.errors import NotFoundError
from regdesk.models.event import Event, EventStatus
from regdesk.models.sheet_sync import SheetSync, SyncStatus
from regdesk.services.form_schema_service import FormSchemaService

logger = logging.getLogger(__name__)


class EventService:
    """Service for publishing and closing events"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_event(self, event_id: uuid.UUID) -> Optional[Event]:
        return self.db.get(Event, event_id)

    async def publish_event(
        self, event_id: uuid.UUID, sheets_client: SheetsClient
    ) -> Event:
        """
        Publish a draft event and provision its registration sheet.

        Raises:
            NotFoundError: If the event doesn't exist
            ValueError: If the event isn't a draft or has no form yet
            RuntimeError: If the sheet could not be created
        """
        event = self.db.get(Event, event_id)
        if not event:
            raise NotFoundError("Event not found")

        if event.status != EventStatus.DRAFT:
            raise ValueError("Event is already published")

        form = FormSchemaService(self.db).get_active_form(event_id)
        if not form:
            raise ValueError("Please create a registration form before publishing")

        try:
            sheet = await sheets_client.create_sheet_for_event(
                str(event_id), event.name, form.field_definitions()
            )
        except Exception as e:
            logger.error(f"Sheet provisioning failed for event {event_id}: {e}")
            raise RuntimeError(f"Failed to create Google Sheet: {e}") from e

        now = datetime.now(timezone.utc)
        event.status = EventStatus.PUBLISHED
        event.published_at = now
        event.sheet_id = sheet.sheet_id
        event.updated_at = now

        record = SheetSync(
            event_id=event_id,
            sheet_id=sheet.sheet_id,
            sheet_url=sheet.sheet_url,
            column_mapping=sheet.column_mapping,
            last_sync_status=SyncStatus.SUCCESS,
        )

        try:
            self.db.add(event)
            self.db.add(record)
            self.db.commit()
            self.db.refresh(event)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error publishing event {event_id}: {e}")
            raise

        logger.info(f"Published event {event_id} with sheet {sheet.sheet_id}")
        return event

    def close_registrations(self, event_id: uuid.UUID) -> Event:
        """Stop accepting registrations for a published event"""
        event = self.db.get(Event, event_id)
        if not event:
            raise NotFoundError("Event not found")

        if event.status != EventStatus.PUBLISHED:
            raise ValueError("Only published events can be closed")

        now = datetime.now(timezone.utc)
        event.status = EventStatus.CLOSED
        event.closed_at = now
        event.updated_at = now

        try:
            self.db.add(event)
            self.db.commit()
            self.db.refresh(event)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error closing event {event_id}: {e}")
            raise

        logger.info(f"Closed registrations for event {event_id}")
        return event
