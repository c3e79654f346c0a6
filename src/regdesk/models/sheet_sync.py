"""SQLModel SheetSync model: per-event bookkeeping of the external sheet"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column, DateTime, Integer
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


class SyncStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


class SheetSync(SQLModel, table=True):
    """Sheet provisioned for an event and the health of its mirror"""

    __tablename__ = "sheet_syncs"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    event_id: uuid.UUID = Field(foreign_key="events.id", unique=True, index=True)
    sheet_id: str = Field(index=True)
    sheet_url: str
    # Field id (plus registration_id/submitted_at/status/last_updated) -> column letter
    column_mapping: dict = Field(default_factory=dict, sa_column=Column(JSON))
    last_sync_status: SyncStatus = Field(
        default=SyncStatus.PENDING,
        sa_column=Column(
            SAEnum(
                SyncStatus,
                name="sheet_sync_status",
                native_enum=True,
                values_callable=lambda enum: [e.value for e in enum],
            ),
            nullable=False,
            server_default=SyncStatus.PENDING.value,
            index=True,
        ),
    )
    last_sync_error: Optional[str] = None
    last_synced_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    total_rows_synced: int = Field(
        default=0, sa_column=Column(Integer, nullable=False, server_default="0")
    )
    failed_sync_count: int = Field(
        default=0, sa_column=Column(Integer, nullable=False, server_default="0")
    )
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
