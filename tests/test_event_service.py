"""Tests for publishing and closing events"""

import uuid

import pytest

from regdesk.errors import NotFoundError
from regdesk.models import EventStatus, SyncStatus
from regdesk.services.sheet_sync_service import SheetSyncService


@pytest.mark.asyncio
async def test_publish_provisions_sheet(event_service, sheets_client, create_event):
    event = create_event(status=EventStatus.DRAFT, with_sheet=False)

    published = await event_service.publish_event(event.id, sheets_client)

    assert published.status == EventStatus.PUBLISHED
    assert published.published_at is not None
    assert published.sheet_id == f"sheet-{event.id}"

    record = SheetSyncService(event_service.db, sheets_client).get_sync_record(event.id)
    assert record.sheet_id == published.sheet_id
    assert record.last_sync_status == SyncStatus.SUCCESS
    assert record.column_mapping == {
        "registration_id": "A",
        "submitted_at": "B",
        "status": "C",
        "full_name": "D",
        "email": "E",
        "phone": "F",
        "track": "G",
        "interests": "H",
        "last_updated": "I",
    }
    assert sheets_client.rows(published.sheet_id)[1] == [
        "Registration ID",
        "Submitted At",
        "Status",
        "Full Name",
        "Email Address",
        "Phone Number",
        "Track",
        "Interests",
        "Last Updated",
    ]


@pytest.mark.asyncio
async def test_publish_requires_form(event_service, sheets_client, create_event):
    event = create_event(status=EventStatus.DRAFT, with_form=False)

    with pytest.raises(ValueError, match="create a registration form"):
        await event_service.publish_event(event.id, sheets_client)


@pytest.mark.asyncio
async def test_publish_only_drafts(event_service, sheets_client, create_event):
    event = create_event(status=EventStatus.PUBLISHED)

    with pytest.raises(ValueError, match="already published"):
        await event_service.publish_event(event.id, sheets_client)


@pytest.mark.asyncio
async def test_publish_sheet_failure_keeps_draft(
    event_service, sheets_client, create_event
):
    event = create_event(status=EventStatus.DRAFT, with_sheet=False)
    sheets_client.fail_create = True

    with pytest.raises(RuntimeError, match="Failed to create Google Sheet"):
        await event_service.publish_event(event.id, sheets_client)

    assert event_service.get_event(event.id).status == EventStatus.DRAFT


@pytest.mark.asyncio
async def test_publish_unknown_event(event_service, sheets_client):
    with pytest.raises(NotFoundError):
        await event_service.publish_event(uuid.uuid4(), sheets_client)


def test_close_registrations(event_service, create_event):
    event = create_event()

    closed = event_service.close_registrations(event.id)

    assert closed.status == EventStatus.CLOSED
    assert closed.closed_at is not None


def test_close_requires_published(event_service, create_event):
    event = create_event(status=EventStatus.DRAFT)

    with pytest.raises(ValueError):
        event_service.close_registrations(event.id)
