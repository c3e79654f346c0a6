"""Public registration endpoints"""

import logging
import uuid
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from regdesk.errors import RegistrationError
from regdesk.models.database import get_db
from regdesk.routers.request_validator import (
    http_error,
    registration_summary,
)
from regdesk.services.event_service import EventService
from regdesk.services.form_schema_service import FormSchemaService
from regdesk.services.registration_service import RegistrationService
from regdesk.services.sheets_service import get_sync_worker
from regdesk.services.sync_worker import SheetSyncWorker

router = APIRouter(tags=["Registration"])
logger = logging.getLogger(__name__)


class RegistrationSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    form_data: Dict[str, Any] = Field(
        ..., alias="formData", description="Mapping of form field id to value"
    )


@router.get("/events/{event_id}/form")
async def get_registration_form(event_id: uuid.UUID, db: Session = Depends(get_db)):
    """Return the active form schema for an event"""
    form = FormSchemaService(db).get_active_form(event_id)
    if not form:
        raise HTTPException(
            status_code=404,
            detail={"code": "NOT_FOUND", "message": "Form not found for this event"},
        )

    return {
        "success": True,
        "data": {
            "form": {
                "id": str(form.id),
                "eventId": str(form.event_id),
                "version": form.version,
                "fields": [
                    f.model_dump(mode="json", by_alias=True)
                    for f in form.field_definitions()
                ],
            }
        },
    }


@router.post("/events/{event_id}/register", status_code=201)
async def submit_registration(
    event_id: uuid.UUID,
    submission: RegistrationSubmission,
    db: Session = Depends(get_db),
    sync_worker: SheetSyncWorker = Depends(get_sync_worker),
):
    """Handle a registration form submission"""
    registration_service = RegistrationService(db, sync_worker)

    try:
        registration = registration_service.submit(event_id, submission.form_data)
    except RegistrationError as e:
        logger.info(f"Registration for event {event_id} rejected: {e.code} {e.message}")
        raise http_error(e)

    return {
        "success": True,
        "data": {"registration": registration_summary(registration)},
        "message": "Registration successful! Check your email for confirmation.",
    }


@router.get("/registrations/{registration_id}")
async def lookup_registration(registration_id: str, db: Session = Depends(get_db)):
    """Look up a registration by its REG-... identifier"""
    registration = RegistrationService(db).get_by_registration_id(registration_id)
    if not registration:
        raise HTTPException(
            status_code=404,
            detail={"code": "NOT_FOUND", "message": "Registration not found"},
        )

    event = EventService(db).get_event(registration.event_id)
    summary = registration_summary(registration)
    summary.update(
        {
            "eventName": event.name if event else None,
            "eventDate": event.event_date.isoformat() if event else None,
            "eventVenue": event.venue if event else None,
            "formData": registration.form_data,
        }
    )
    return {"success": True, "data": {"registration": summary}}
