"""Registration service: admission of form submissions"""

import logging
import math
import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence

from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from regdesk.errors import (
    AlreadyRegisteredError,
    CapacityReachedError,
    DeadlinePassedError,
    EmailRequiredError,
    FormValidationError,
    NotFoundError,
    PersistenceConflictError,
    RegistrationNotOpenError,
)
from regdesk.models.event import Event, EventStatus
from regdesk.models.field_type import FieldType
from regdesk.models.form_field import FormFieldDefinition
from regdesk.models.registration import Registration, RegistrationStatus
from regdesk.services.form_schema_service import FormSchemaService
from regdesk.services.form_validator import is_empty, validate_form_data

logger = logging.getLogger(__name__)

# Fresh identifiers to try when REG-<year>-<random> collides on insert
MAX_ID_ATTEMPTS = 5


@dataclass
class QuickAccessFields:
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class RegistrationPage:
    registrations: List[Registration]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (e.g. read back from SQLite) as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class RegistrationService:
    """Service for admitting and managing event registrations"""

    def __init__(self, db_session: Session, sync_worker=None):
        self.db = db_session
        # Anything with enqueue(event_id, registration_pk); None disables sheet sync
        self.sync_worker = sync_worker

    @staticmethod
    def generate_registration_id(now: Optional[datetime] = None) -> str:
        """REG-<year>-<6 digit zero padded random number>"""
        year = (now or datetime.now(timezone.utc)).year
        return f"REG-{year}-{random.randint(0, 999999):06d}"

    @staticmethod
    def extract_quick_access_fields(
        form_data: Mapping[str, Any], fields: Sequence[FormFieldDefinition]
    ) -> QuickAccessFields:
        """
        Pull email, display name and phone out of free-form submission data.

        First non-empty match wins per category: email from the first email
        field, name from the first field labelled with "name" or "team",
        phone from the first phone field.
        """
        quick = QuickAccessFields()

        for field_def in fields:
            value = form_data.get(field_def.id)
            if is_empty(value) or not isinstance(value, str):
                continue

            if field_def.type == FieldType.EMAIL and quick.email is None:
                quick.email = value.strip().lower()

            label = field_def.label.lower()
            if ("name" in label or "team" in label) and quick.name is None:
                quick.name = value.strip()

            if field_def.type == FieldType.PHONE and quick.phone is None:
                quick.phone = value.strip()

        return quick

    def submit(
        self,
        event_id: uuid.UUID,
        form_data: Mapping[str, Any],
        now: Optional[datetime] = None,
    ) -> Registration:
        """
        Admit a registration for an event.

        Args:
            event_id: UUID of the event
            form_data: Mapping of form field id -> submitted value
            now: Override for the current time (tests)

        Returns:
            Registration: The persisted registration

        Raises:
            NotFoundError: Event or active form missing
            RegistrationNotOpenError: Event is not published
            DeadlinePassedError: Registration deadline is over
            CapacityReachedError: Event is full
            FormValidationError: Field level errors, keyed by field id
            EmailRequiredError: No email could be derived from the submission
            AlreadyRegisteredError: Email already registered for this event
        """
        now = now or datetime.now(timezone.utc)

        event = self.db.get(Event, event_id)
        if not event:
            raise NotFoundError("Event not found")

        if event.status != EventStatus.PUBLISHED:
            raise RegistrationNotOpenError()

        if now > as_utc(event.registration_deadline):
            raise DeadlinePassedError()

        if (
            event.max_capacity is not None
            and event.total_registrations >= event.max_capacity
        ):
            raise CapacityReachedError()

        form = FormSchemaService(self.db).get_active_form(event_id)
        if not form:
            raise NotFoundError("Registration form not found")

        fields = form.field_definitions()
        validation = validate_form_data(form_data, fields)
        if not validation.is_valid:
            raise FormValidationError(validation.errors)

        quick = self.extract_quick_access_fields(form_data, fields)
        if not quick.email:
            raise EmailRequiredError()

        # Fast path only; the unique constraint on (event_id, email) decides races
        if self._find_existing_registration(event_id, quick.email):
            raise AlreadyRegisteredError()

        status = (
            RegistrationStatus.PENDING
            if event.requires_approval
            else RegistrationStatus.APPROVED
        )

        registration = self._insert_registration(
            event_id, dict(form_data), quick, status, now
        )
        logger.info(
            f"Created registration {registration.registration_id} for event {event_id} "
            f"with status {registration.status.value}"
        )

        self._schedule_sync(registration)
        return registration

    def _insert_registration(
        self,
        event_id: uuid.UUID,
        form_data: dict,
        quick: QuickAccessFields,
        status: RegistrationStatus,
        now: datetime,
    ) -> Registration:
        """Reserve a seat and insert the row in one transaction"""
        for attempt in range(1, MAX_ID_ATTEMPTS + 1):
            registration = Registration(
                registration_id=self.generate_registration_id(now),
                event_id=event_id,
                form_data=form_data,
                email=quick.email,
                name=quick.name,
                phone=quick.phone,
                status=status,
                submitted_at=now,
                updated_at=now,
            )

            try:
                if not self._reserve_seat(event_id, now):
                    raise CapacityReachedError()
                self.db.add(registration)
                self.db.flush()
                self.db.commit()
            except CapacityReachedError:
                self.db.rollback()
                logger.info(f"Event {event_id} filled up during admission")
                raise
            except IntegrityError as e:
                self.db.rollback()
                if self._find_existing_registration(event_id, quick.email):
                    logger.info(
                        f"Concurrent duplicate registration for event {event_id} "
                        "rejected by unique constraint"
                    )
                    raise AlreadyRegisteredError() from e
                logger.warning(
                    f"Registration id {registration.registration_id} collided "
                    f"(attempt {attempt}/{MAX_ID_ATTEMPTS}); regenerating"
                )
                continue

            self.db.refresh(registration)
            return registration

        raise PersistenceConflictError(
            "Could not allocate a unique registration id, please retry"
        )

    def _reserve_seat(self, event_id: uuid.UUID, now: datetime) -> bool:
        """
        Atomically increment the event counter when capacity allows.

        A single conditional UPDATE, so two admissions can never both take
        the last seat. Returns False when the event is already full.
        """
        stmt = (
            update(Event)
            .where(
                Event.id == event_id,
                or_(
                    col(Event.max_capacity).is_(None),
                    Event.total_registrations < Event.max_capacity,
                ),
            )
            .values(
                total_registrations=Event.total_registrations + 1,
                updated_at=now,
            )
        )
        result = self.db.exec(stmt)
        return result.rowcount == 1

    def _find_existing_registration(
        self, event_id: uuid.UUID, email: str
    ) -> Optional[Registration]:
        stmt = select(Registration).where(
            Registration.event_id == event_id,
            Registration.email == email,
        )
        return self.db.exec(stmt).first()

    def _schedule_sync(self, registration: Registration) -> None:
        """Hand the registration to the sheet sync worker without waiting"""
        if self.sync_worker is None:
            return
        try:
            self.sync_worker.enqueue(registration.event_id, registration.id)
        except Exception as e:
            # Sync is best effort; admission already succeeded
            logger.error(
                f"Failed to schedule sheet sync for {registration.registration_id}: {e}"
            )

    def get_registration_by_id(
        self, registration_pk: uuid.UUID
    ) -> Optional[Registration]:
        """Get a registration by primary key"""
        return self.db.get(Registration, registration_pk)

    def get_by_registration_id(self, registration_id: str) -> Optional[Registration]:
        """Get a registration by its human readable REG-... identifier"""
        stmt = select(Registration).where(
            Registration.registration_id == registration_id
        )
        return self.db.exec(stmt).first()

    def list_registrations(
        self,
        event_id: uuid.UUID,
        status: Optional[RegistrationStatus] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> RegistrationPage:
        """
        List registrations for an event, newest first.

        Args:
            event_id: UUID of the event
            status: Optional status filter
            search: Case-insensitive match on email, name, phone or registration id
            page: 1-based page number
            limit: Page size
        """
        page = max(page, 1)
        limit = max(limit, 1)

        conditions = [Registration.event_id == event_id]
        if status is not None:
            conditions.append(Registration.status == status)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    col(Registration.email).ilike(pattern),
                    col(Registration.name).ilike(pattern),
                    col(Registration.phone).ilike(pattern),
                    col(Registration.registration_id).ilike(pattern),
                )
            )

        total = self.db.exec(
            select(func.count(Registration.id)).where(*conditions)
        ).one()

        stmt = (
            select(Registration)
            .where(*conditions)
            .order_by(col(Registration.submitted_at).desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        registrations = list(self.db.exec(stmt).all())

        return RegistrationPage(
            registrations=registrations, total=total, page=page, limit=limit
        )

    def update_status(
        self,
        event_id: uuid.UUID,
        registration_id: str,
        status: RegistrationStatus,
        status_note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Registration:
        """
        Approve or reject a registration and re-sync its sheet row.

        Raises:
            ValueError: If status is not approved or rejected
            NotFoundError: If the registration doesn't belong to the event
        """
        status = RegistrationStatus(status)
        if status == RegistrationStatus.PENDING:
            raise ValueError("Status must be 'approved' or 'rejected'")

        registration = self.get_by_registration_id(registration_id)
        if not registration or registration.event_id != event_id:
            raise NotFoundError("Registration not found")

        now = now or datetime.now(timezone.utc)
        registration.status = status
        registration.status_note = status_note
        if status == RegistrationStatus.APPROVED:
            registration.approved_at = now
        else:
            registration.rejected_at = now
        registration.updated_at = now

        try:
            self.db.add(registration)
            self.db.commit()
            self.db.refresh(registration)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating registration {registration_id}: {e}")
            raise

        logger.info(f"Registration {registration_id} marked {status.value}")
        self._schedule_sync(registration)
        return registration
