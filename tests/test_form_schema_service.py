"""Tests for versioned registration form storage"""

import uuid

import pytest

from regdesk.errors import NotFoundError
from regdesk.models import EventStatus, RegistrationForm
from regdesk.models.form_field import FormFieldDefinition
from regdesk.services.form_schema_service import NEW_VERSION_WARNING


def test_first_form_marks_event(
    form_schema_service, event_service, create_event, form_fields
):
    event = create_event(status=EventStatus.DRAFT, with_form=False)

    result = form_schema_service.upsert_form(event.id, form_fields)

    assert result.warning is None
    assert result.form.version == 1
    assert result.form.is_active is True
    assert event_service.get_event(event.id).has_form is True

    definitions = result.form.field_definitions()
    assert [f.id for f in definitions] == [
        "full_name",
        "email",
        "phone",
        "track",
        "interests",
    ]
    # Position in the submitted list becomes the display order
    assert [f.order for f in definitions] == [0, 1, 2, 3, 4]


def test_edit_in_place_without_registrations(
    form_schema_service, create_event, form_fields
):
    event = create_event(status=EventStatus.DRAFT)
    original = form_schema_service.get_active_form(event.id)

    updated_fields = form_fields + [
        {"id": "dietary", "type": "textarea", "label": "Dietary Restrictions"}
    ]
    result = form_schema_service.upsert_form(event.id, updated_fields)

    assert result.warning is None
    assert result.form.id == original.id
    assert result.form.version == 1
    assert "dietary" in [f.id for f in result.form.field_definitions()]


def test_new_version_once_registrations_exist(
    form_schema_service, registration_service, create_event, form_fields, submission
):
    event = create_event()
    original = form_schema_service.get_active_form(event.id)
    original_id = original.id
    registration_service.submit(event.id, submission())

    result = form_schema_service.upsert_form(event.id, form_fields[:2])

    assert result.warning == NEW_VERSION_WARNING
    assert result.form.id != original_id
    assert result.form.version == 2

    active = form_schema_service.get_active_form(event.id)
    assert active.id == result.form.id
    assert [f.id for f in active.field_definitions()] == ["full_name", "email"]
    assert form_schema_service.db.get(RegistrationForm, original_id).is_active is False


def test_camel_case_validation_is_stored(form_schema_service, create_event):
    event = create_event(status=EventStatus.DRAFT, with_form=False)

    result = form_schema_service.upsert_form(
        event.id,
        [
            {
                "id": "bio",
                "type": "textarea",
                "label": "Short Bio",
                "helpText": "Two sentences",
                "validation": {"minLength": 10, "maxLength": 280},
            }
        ],
    )

    stored = result.form.fields[0]
    assert stored["validation"] == {"min_length": 10, "max_length": 280}
    definition = result.form.field_definitions()[0]
    assert definition.help_text == "Two sentences"
    assert definition.validation.max_length == 280


def test_accepts_field_models(form_schema_service, create_event):
    event = create_event(status=EventStatus.DRAFT, with_form=False)

    result = form_schema_service.upsert_form(
        event.id,
        [FormFieldDefinition(id="email", type="email", label="Email", required=True)],
    )

    assert result.form.field_definitions()[0].required is True


def test_empty_form_rejected(form_schema_service, create_event):
    event = create_event(status=EventStatus.DRAFT, with_form=False)

    with pytest.raises(ValueError, match="at least one field"):
        form_schema_service.upsert_form(event.id, [])


def test_duplicate_field_ids_rejected(form_schema_service, create_event):
    event = create_event(status=EventStatus.DRAFT, with_form=False)

    with pytest.raises(ValueError, match="Duplicate field id 'email'"):
        form_schema_service.upsert_form(
            event.id,
            [
                {"id": "email", "type": "email", "label": "Email"},
                {"id": "email", "type": "text", "label": "Email again"},
            ],
        )

    assert form_schema_service.get_active_form(event.id) is None


def test_unknown_event(form_schema_service, form_fields):
    with pytest.raises(NotFoundError):
        form_schema_service.upsert_form(uuid.uuid4(), form_fields)
