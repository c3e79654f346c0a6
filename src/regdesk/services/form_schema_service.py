"""Form schema service for storing versioned registration forms"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from sqlalchemy import func
from sqlmodel import Session, select

from regdesk.errors import NotFoundError
from regdesk.models.event import Event
from regdesk.models.form_field import FormFieldDefinition
from regdesk.models.registration import Registration
from regdesk.models.registration_form import RegistrationForm

logger = logging.getLogger(__name__)

NEW_VERSION_WARNING = "Form updated. Changes will only apply to new registrations."


@dataclass
class FormUpsertResult:
    form: RegistrationForm
    warning: Optional[str] = None


class FormSchemaService:
    """Service for managing registration form schemas"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_active_form(self, event_id: uuid.UUID) -> Optional[RegistrationForm]:
        """Get the form currently accepting submissions for an event"""
        stmt = select(RegistrationForm).where(
            RegistrationForm.event_id == event_id,
            RegistrationForm.is_active == True,  # noqa: E712
        )
        return self.db.exec(stmt).first()

    def upsert_form(
        self, event_id: uuid.UUID, fields: Sequence[Any]
    ) -> FormUpsertResult:
        """
        Create or update the active form for an event.

        If the event already has registrations the current form is deactivated
        and a new version is created, so past submissions keep the shape they
        were made against. Otherwise the active form is edited in place.

        Args:
            event_id: UUID of the event
            fields: Field definitions (models or dicts from the form builder)

        Returns:
            FormUpsertResult with the active form and an optional warning

        Raises:
            NotFoundError: If the event doesn't exist
            ValueError: If the field list is empty or field ids repeat
        """
        event = self.db.get(Event, event_id)
        if not event:
            raise NotFoundError("Event not found")

        definitions = self._normalize_fields(fields)
        stored = [d.model_dump(mode="json", exclude_none=True) for d in definitions]

        existing = self.get_active_form(event_id)
        now = datetime.now(timezone.utc)

        try:
            if existing and self._registration_count(event_id) > 0:
                existing.is_active = False
                existing.updated_at = now
                self.db.add(existing)
                # Deactivation must hit the database before the new active row
                self.db.flush()

                form = RegistrationForm(
                    event_id=event_id,
                    fields=stored,
                    is_active=True,
                    version=existing.version + 1,
                )
                self.db.add(form)
                warning = NEW_VERSION_WARNING
                logger.info(
                    f"Created form version {form.version} for event {event_id}; "
                    f"version {existing.version} retired"
                )
            elif existing:
                existing.fields = stored
                existing.updated_at = now
                self.db.add(existing)
                form = existing
                warning = None
                logger.info(f"Updated form {existing.id} in place for event {event_id}")
            else:
                form = RegistrationForm(
                    event_id=event_id, fields=stored, is_active=True
                )
                self.db.add(form)
                event.has_form = True
                event.updated_at = now
                self.db.add(event)
                warning = None
                logger.info(f"Created first form for event {event_id}")

            self.db.commit()
            self.db.refresh(form)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error saving form for event {event_id}: {e}")
            raise

        return FormUpsertResult(form=form, warning=warning)

    def _registration_count(self, event_id: uuid.UUID) -> int:
        stmt = select(func.count(Registration.id)).where(
            Registration.event_id == event_id
        )
        return self.db.exec(stmt).one()

    @staticmethod
    def _normalize_fields(fields: Sequence[Any]) -> List[FormFieldDefinition]:
        if not fields:
            raise ValueError("Form must have at least one field")

        definitions = []
        for index, raw in enumerate(fields):
            if isinstance(raw, FormFieldDefinition):
                definition = raw
            else:
                data = dict(raw)
                data.setdefault("order", index)
                definition = FormFieldDefinition.model_validate(data)
            definitions.append(definition)

        seen = set()
        for definition in definitions:
            if definition.id in seen:
                raise ValueError(f"Duplicate field id '{definition.id}'")
            seen.add(definition.id)

        return definitions
