"""Init registration schema

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-17 09:12:40.118204

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

event_status = sa.Enum(
    "draft", "published", "closed", "completed", "cancelled", name="event_status"
)
registration_status = sa.Enum(
    "pending", "approved", "rejected", name="registration_status"
)
sheet_sync_status = sa.Enum("success", "failed", "pending", name="sheet_sync_status")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "events",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=False),
        sa.Column("description", sa.VARCHAR(), nullable=False),
        sa.Column("venue", sa.VARCHAR(), nullable=False),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("registration_deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("max_capacity", sa.Integer(), nullable=True),
        sa.Column("requires_approval", sa.Boolean(), nullable=False),
        sa.Column(
            "status", event_status, nullable=False, server_default="draft"
        ),
        sa.Column("has_form", sa.Boolean(), nullable=False),
        sa.Column("sheet_id", sa.VARCHAR(), nullable=True),
        sa.Column(
            "total_registrations", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "max_capacity IS NULL OR max_capacity >= 1",
            name="ck_events_capacity_ge_1_or_null",
        ),
        sa.CheckConstraint(
            "total_registrations >= 0", name="ck_events_total_registrations_ge_0"
        ),
    )
    op.create_index("ix_events_event_date", "events", ["event_date"])
    op.create_index("ix_events_status", "events", ["status"])

    op.create_table(
        "registration_forms",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("event_id", sa.Uuid(), nullable=False),
        sa.Column("fields", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_registration_forms_event_id", "registration_forms", ["event_id"]
    )
    # At most one active form per event
    op.create_index(
        "uq_registration_forms_active_event",
        "registration_forms",
        ["event_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "registrations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("registration_id", sa.VARCHAR(), nullable=False),
        sa.Column("event_id", sa.Uuid(), nullable=False),
        sa.Column("form_data", sa.JSON(), nullable=True),
        sa.Column("email", sa.VARCHAR(), nullable=False),
        sa.Column("name", sa.VARCHAR(), nullable=True),
        sa.Column("phone", sa.VARCHAR(), nullable=True),
        sa.Column("status", registration_status, nullable=False),
        sa.Column("status_note", sa.VARCHAR(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sheet_row_number", sa.Integer(), nullable=True),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "email", name="uq_registrations_event_email"),
    )
    op.create_index(
        "ix_registrations_registration_id",
        "registrations",
        ["registration_id"],
        unique=True,
    )
    op.create_index("ix_registrations_event_id", "registrations", ["event_id"])
    op.create_index("ix_registrations_email", "registrations", ["email"])
    op.create_index("ix_registrations_status", "registrations", ["status"])
    op.create_index("ix_registrations_submitted_at", "registrations", ["submitted_at"])

    op.create_table(
        "sheet_syncs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("event_id", sa.Uuid(), nullable=False),
        sa.Column("sheet_id", sa.VARCHAR(), nullable=False),
        sa.Column("sheet_url", sa.VARCHAR(), nullable=False),
        sa.Column("column_mapping", sa.JSON(), nullable=True),
        sa.Column(
            "last_sync_status",
            sheet_sync_status,
            nullable=False,
            server_default="pending",
        ),
        sa.Column("last_sync_error", sa.VARCHAR(), nullable=True),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "total_rows_synced", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column(
            "failed_sync_count", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_sheet_syncs_event_id", "sheet_syncs", ["event_id"], unique=True
    )
    op.create_index("ix_sheet_syncs_sheet_id", "sheet_syncs", ["sheet_id"])
    op.create_index(
        "ix_sheet_syncs_last_sync_status", "sheet_syncs", ["last_sync_status"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("sheet_syncs")
    op.drop_table("registrations")
    op.drop_table("registration_forms")
    op.drop_table("events")
    sheet_sync_status.drop(op.get_bind(), checkfirst=True)
    registration_status.drop(op.get_bind(), checkfirst=True)
    event_status.drop(op.get_bind(), checkfirst=True)
