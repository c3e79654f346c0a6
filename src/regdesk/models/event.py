"""SQLModel Event model"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, Column, DateTime, Integer
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CLOSED = "closed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Event(SQLModel, table=True):
    """Event accepting registrations.

    ``total_registrations`` is only ever changed through a single UPDATE
    statement so concurrent admissions cannot overshoot ``max_capacity``.
    """

    __tablename__ = "events"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    description: str = ""
    venue: str = ""
    event_date: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    registration_deadline: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    max_capacity: Optional[int] = None  # None means unlimited
    requires_approval: bool = Field(default=False)
    status: EventStatus = Field(
        default=EventStatus.DRAFT,
        sa_column=Column(
            SAEnum(
                EventStatus,
                name="event_status",
                native_enum=True,
                values_callable=lambda enum: [e.value for e in enum],
            ),
            nullable=False,
            server_default=EventStatus.DRAFT.value,
            index=True,
        ),
    )
    has_form: bool = Field(default=False)
    sheet_id: Optional[str] = None
    total_registrations: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default="0"),
    )
    published_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    closed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        CheckConstraint(
            "max_capacity IS NULL OR max_capacity >= 1",
            name="ck_events_capacity_ge_1_or_null",
        ),
        CheckConstraint(
            "total_registrations >= 0", name="ck_events_total_registrations_ge_0"
        ),
    )
