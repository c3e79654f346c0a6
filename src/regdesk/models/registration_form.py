"""SQLModel RegistrationForm model"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, Column, Index, text
from sqlmodel import Field, SQLModel

from regdesk.models.form_field import FormFieldDefinition


class RegistrationForm(SQLModel, table=True):
    """Versioned form schema for an event.

    Only one form per event may be active; older versions are kept so past
    registrations can still be read against the shape they were submitted with.
    """

    __tablename__ = "registration_forms"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    event_id: uuid.UUID = Field(
        foreign_key="events.id", ondelete="CASCADE", index=True
    )
    fields: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    is_active: bool = Field(default=True)
    version: int = Field(default=1)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index(
            "uq_registration_forms_active_event",
            "event_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )

    def field_definitions(self) -> List[FormFieldDefinition]:
        """Parsed field definitions in display order"""
        parsed = [FormFieldDefinition.model_validate(f) for f in self.fields or []]
        # sorted() is stable, so equal "order" values keep their stored position
        return sorted(parsed, key=lambda f: f.order)
