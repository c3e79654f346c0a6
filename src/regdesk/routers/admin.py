"""Administrative endpoints for coordinators: forms, publishing, review and sync"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from regdesk.backends.sheets_client import SheetsClient
from regdesk.config import config
from regdesk.errors import RegistrationError
from regdesk.models.database import get_db
from regdesk.models.form_field import FormFieldDefinition
from regdesk.models.registration import RegistrationStatus
from regdesk.routers.request_validator import (
    http_error,
    registration_details,
    verify_admin_key,
)
from regdesk.services.event_service import EventService
from regdesk.services.form_schema_service import FormSchemaService
from regdesk.services.registration_service import RegistrationService
from regdesk.services.sheet_sync_service import SheetSyncService
from regdesk.services.sheets_service import get_sheets_client, get_sync_worker
from regdesk.services.sync_worker import SheetSyncWorker

router = APIRouter(
    prefix="/events", tags=["Admin"], dependencies=[Depends(verify_admin_key)]
)
logger = logging.getLogger(__name__)


class FormUpdateRequest(BaseModel):
    fields: List[FormFieldDefinition] = Field(..., min_length=1)


class StatusUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: RegistrationStatus
    status_note: Optional[str] = Field(default=None, alias="statusNote")


@router.put("/{event_id}/form")
async def upsert_registration_form(
    event_id: uuid.UUID, request: FormUpdateRequest, db: Session = Depends(get_db)
):
    """Create or update the registration form for an event"""
    try:
        result = FormSchemaService(db).upsert_form(event_id, request.fields)
    except RegistrationError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(
            status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}
        )

    return {
        "success": True,
        "data": {
            "formId": str(result.form.id),
            "version": result.form.version,
            "warning": result.warning,
        },
    }


@router.post("/{event_id}/publish")
async def publish_event(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    sheets_client: SheetsClient = Depends(get_sheets_client),
):
    """Publish a draft event and provision its registration sheet"""
    try:
        event = await EventService(db).publish_event(event_id, sheets_client)
    except RegistrationError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(
            status_code=400, detail={"code": "INVALID_STATE", "message": str(e)}
        )
    except RuntimeError as e:
        raise HTTPException(
            status_code=502, detail={"code": "SHEET_ERROR", "message": str(e)}
        )

    return {
        "success": True,
        "data": {"eventId": str(event.id), "status": event.status.value},
        "message": "Event published successfully",
    }


@router.post("/{event_id}/close")
async def close_registrations(event_id: uuid.UUID, db: Session = Depends(get_db)):
    """Stop accepting registrations for an event"""
    try:
        event = EventService(db).close_registrations(event_id)
    except RegistrationError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(
            status_code=400, detail={"code": "INVALID_STATE", "message": str(e)}
        )

    return {
        "success": True,
        "data": {"eventId": str(event.id), "status": event.status.value},
    }


@router.get("/{event_id}/registrations")
async def list_registrations(
    event_id: uuid.UUID,
    status: Optional[RegistrationStatus] = None,
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """List registrations for an event, newest first"""
    result = RegistrationService(db).list_registrations(
        event_id, status=status, search=search, page=page, limit=limit
    )
    return {
        "success": True,
        "data": {
            "registrations": [registration_details(r) for r in result.registrations],
            "pagination": {
                "total": result.total,
                "page": result.page,
                "limit": result.limit,
                "totalPages": result.total_pages,
            },
        },
    }


@router.patch("/{event_id}/registrations/{registration_id}")
async def update_registration_status(
    event_id: uuid.UUID,
    registration_id: str,
    request: StatusUpdateRequest,
    db: Session = Depends(get_db),
    sync_worker: SheetSyncWorker = Depends(get_sync_worker),
):
    """Approve or reject a registration"""
    try:
        registration = RegistrationService(db, sync_worker).update_status(
            event_id, registration_id, request.status, request.status_note
        )
    except RegistrationError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(
            status_code=400, detail={"code": "VALIDATION_ERROR", "message": str(e)}
        )

    return {
        "success": True,
        "data": {"registration": registration_details(registration)},
    }


@router.post("/{event_id}/sheet/sync")
async def sync_sheet(
    event_id: uuid.UUID,
    db: Session = Depends(get_db),
    sheets_client: SheetsClient = Depends(get_sheets_client),
):
    """Re-sync every registration of an event into its sheet"""
    service = SheetSyncService(
        db, sheets_client, batch_delay_seconds=config["sync_batch_delay_seconds"]
    )
    if not service.get_sync_record(event_id):
        raise HTTPException(
            status_code=404,
            detail={"code": "NOT_FOUND", "message": "No sheet configured for event"},
        )

    result = await service.sync_all(event_id)
    return {
        "success": True,
        "data": {
            "syncStatus": result.status,
            "totalRegistrations": result.attempted,
            "synced": result.succeeded,
            "failed": result.failed,
        },
        "message": f"Synced {result.succeeded} of {result.attempted} registrations",
    }


@router.get("/{event_id}/sheet")
async def get_sheet_status(event_id: uuid.UUID, db: Session = Depends(get_db)):
    """Sync health of the event's sheet"""
    record = SheetSyncService(db, sheets_client=None).get_sync_record(event_id)
    if not record:
        raise HTTPException(
            status_code=404,
            detail={"code": "NOT_FOUND", "message": "No sheet configured for event"},
        )

    return {
        "success": True,
        "data": {
            "sheetId": record.sheet_id,
            "sheetUrl": record.sheet_url,
            "columnMapping": record.column_mapping,
            "lastSyncStatus": record.last_sync_status.value,
            "lastSyncError": record.last_sync_error,
            "lastSyncedAt": (
                record.last_synced_at.isoformat() if record.last_synced_at else None
            ),
            "totalRowsSynced": record.total_rows_synced,
            "failedSyncCount": record.failed_sync_count,
        },
    }
