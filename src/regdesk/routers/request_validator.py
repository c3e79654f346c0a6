"""Shared request validation and response helpers for the routers"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status

from regdesk.config import config
from regdesk.errors import RegistrationError
from regdesk.models.registration import Registration


def verify_admin_key(
    x_admin_key: Optional[str] = Header(
        default=None, description="Admin API key for authentication"
    ),
) -> None:
    """Reject administrative calls without the configured X-Admin-Key"""
    expected_key = config.get("admin_api_key")

    if not expected_key or x_admin_key != expected_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin API key"
        )


def http_error(error: RegistrationError) -> HTTPException:
    """Translate a service error into the HTTP error body clients render"""
    return HTTPException(status_code=error.status_code, detail=error.to_detail())


def registration_summary(registration: Registration) -> dict:
    return {
        "registrationId": registration.registration_id,
        "eventId": str(registration.event_id),
        "status": registration.status.value,
        "submittedAt": registration.submitted_at.isoformat(),
    }


def registration_details(registration: Registration) -> dict:
    details = registration_summary(registration)
    details.update(
        {
            "email": registration.email,
            "name": registration.name,
            "phone": registration.phone,
            "formData": registration.form_data,
            "statusNote": registration.status_note,
            "approvedAt": (
                registration.approved_at.isoformat()
                if registration.approved_at
                else None
            ),
            "rejectedAt": (
                registration.rejected_at.isoformat()
                if registration.rejected_at
                else None
            ),
            "sheetRowNumber": registration.sheet_row_number,
            "lastSyncedAt": (
                registration.last_synced_at.isoformat()
                if registration.last_synced_at
                else None
            ),
        }
    )
    return details
