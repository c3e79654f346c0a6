"""SQLModel Registration model"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column, DateTime, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


class RegistrationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Registration(SQLModel, table=True):
    """Registration model for form submissions"""

    __tablename__ = "registrations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    # Human readable identifier, e.g. REG-2026-004211
    registration_id: str = Field(unique=True, index=True)
    event_id: uuid.UUID = Field(foreign_key="events.id", index=True)
    form_data: dict = Field(default_factory=dict, sa_column=Column(JSON))
    email: str = Field(index=True)
    name: Optional[str] = None
    phone: Optional[str] = None
    status: RegistrationStatus = Field(
        default=RegistrationStatus.APPROVED,
        sa_column=Column(
            SAEnum(
                RegistrationStatus,
                name="registration_status",
                native_enum=True,
                values_callable=lambda enum: [e.value for e in enum],
            ),
            nullable=False,
            index=True,
        ),
    )
    status_note: Optional[str] = None
    approved_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    rejected_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    # Row of the event's sheet holding this registration, reused on re-sync
    sheet_row_number: Optional[int] = None
    last_synced_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    submitted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    __table_args__ = (
        UniqueConstraint("event_id", "email", name="uq_registrations_event_email"),
    )
