"""Database models for regdesk"""

from regdesk.models.event import Event, EventStatus
from regdesk.models.field_type import FieldType
from regdesk.models.form_field import FieldValidation, FormFieldDefinition
from regdesk.models.registration import Registration, RegistrationStatus
from regdesk.models.registration_form import RegistrationForm
from regdesk.models.sheet_sync import SheetSync, SyncStatus

__all__ = [
    "Event",
    "EventStatus",
    "FieldType",
    "FieldValidation",
    "FormFieldDefinition",
    "Registration",
    "RegistrationForm",
    "RegistrationStatus",
    "SheetSync",
    "SyncStatus",
]
