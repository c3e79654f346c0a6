"""Tests for per-field validation of submitted form data"""

import pytest

from regdesk.models.field_type import FieldType
from regdesk.models.form_field import FormFieldDefinition
from regdesk.services.form_validator import (
    TYPE_CHECKS,
    is_empty,
    validate_form_data,
)


def _field(**kwargs) -> FormFieldDefinition:
    data = {"id": "field", "type": "text", "label": "Field"}
    data.update(kwargs)
    return FormFieldDefinition.model_validate(data)


def test_type_checks_cover_every_field_type():
    assert set(TYPE_CHECKS) == set(FieldType)


def test_required_error_is_isolated_to_the_empty_field():
    fields = [
        _field(id="full_name", label="Full Name", required=True),
        _field(id="email", type="email", label="Email", required=True),
    ]

    result = validate_form_data({"email": "ada@example.com"}, fields)

    assert not result.is_valid
    assert result.errors == {"full_name": "Full Name is required"}


@pytest.mark.parametrize("empty", [None, "", []])
def test_empty_values_fail_required_fields(empty):
    fields = [_field(id="interests", type="checkbox", label="Interests", required=True)]

    result = validate_form_data({"interests": empty}, fields)

    assert result.errors == {"interests": "Interests is required"}


def test_optional_empty_field_skips_all_checks():
    fields = [
        _field(
            id="phone",
            type="phone",
            label="Phone",
            validation={"minLength": 10, "pattern": "^\\+"},
        )
    ]

    assert validate_form_data({"phone": ""}, fields).is_valid
    assert validate_form_data({}, fields).is_valid


@pytest.mark.parametrize(
    "value, valid",
    [
        ("ada@example.com", True),
        ("first.last@sub.example.org", True),
        ("not-an-email", False),
        ("missing@tld", False),
        ("spaces in@example.com", False),
        ("ada@example.com\n", False),
        ("\nada@example.com", False),
    ],
)
def test_email_format(value, valid):
    fields = [_field(id="email", type="email", label="Email")]

    result = validate_form_data({"email": value}, fields)

    if valid:
        assert result.is_valid
    else:
        assert result.errors == {"email": "Invalid email format"}


@pytest.mark.parametrize(
    "value, valid",
    [
        ("+1 415-555-0100", True),
        ("4155550100", True),
        ("+44 20 7946 0958", True),
        ("12345", False),
        ("0123456789", False),
        ("+1 (415) 555-0100", False),
        ("4155550100x", False),
    ],
)
def test_phone_format_ignores_spaces_and_dashes(value, valid):
    fields = [_field(id="phone", type="phone", label="Phone")]

    result = validate_form_data({"phone": value}, fields)

    if valid:
        assert result.is_valid
    else:
        assert result.errors == {"phone": "Invalid phone number"}


def test_length_constraints():
    fields = [
        _field(
            id="team",
            label="Team Name",
            validation={"minLength": 3, "maxLength": 8},
        )
    ]

    assert validate_form_data({"team": "ab"}, fields).errors == {
        "team": "Minimum 3 characters required"
    }
    assert validate_form_data({"team": "a" * 9}, fields).errors == {
        "team": "Maximum 8 characters allowed"
    }
    assert validate_form_data({"team": "Hackers"}, fields).is_valid


def test_pattern_constraint():
    fields = [
        _field(
            id="code", label="Invite Code", validation={"pattern": "^[A-Z]{3}-\\d{2}$"}
        )
    ]

    assert validate_form_data({"code": "ABC-12"}, fields).is_valid
    assert validate_form_data({"code": "abc-12"}, fields).errors == {
        "code": "Invalid format for Invite Code"
    }


def test_invalid_pattern_becomes_field_error():
    fields = [_field(id="code", label="Invite Code", validation={"pattern": "(["})]

    result = validate_form_data({"code": "anything"}, fields)

    assert result.errors == {"code": "Invalid format for Invite Code"}


def test_numeric_bounds():
    fields = [_field(id="size", label="Team Size", validation={"min": 1, "max": 5})]

    assert validate_form_data({"size": "3"}, fields).is_valid
    assert validate_form_data({"size": 4}, fields).is_valid
    assert validate_form_data({"size": "0"}, fields).errors == {
        "size": "Minimum value is 1"
    }
    assert validate_form_data({"size": "6"}, fields).errors == {
        "size": "Maximum value is 5"
    }


@pytest.mark.parametrize(
    "value", ["three", "nan", "4 people", "1_0", "infinity", "-inf", "0x1", "1e"]
)
def test_non_numeric_value_under_numeric_bounds(value):
    fields = [_field(id="size", label="Team Size", validation={"min": 1, "max": 5})]

    result = validate_form_data({"size": value}, fields)

    assert result.errors == {"size": "Team Size must be a valid number"}


@pytest.mark.parametrize("value", ["2.5", " 3 ", "+4", "4e0", ".5e1", 2.5])
def test_decimal_notation_under_numeric_bounds(value):
    fields = [_field(id="size", label="Team Size", validation={"min": 1, "max": 5})]

    assert validate_form_data({"size": value}, fields).is_valid


def test_zero_bound_is_enforced():
    fields = [_field(id="guests", label="Guests", validation={"min": 0})]

    assert validate_form_data({"guests": "-1"}, fields).errors == {
        "guests": "Minimum value is 0"
    }


def test_first_error_per_field_wins():
    fields = [
        _field(
            id="email",
            type="email",
            label="Email",
            validation={"minLength": 20},
        )
    ]

    result = validate_form_data({"email": "nope"}, fields)

    assert result.errors == {"email": "Invalid email format"}


def test_errors_accumulate_across_fields():
    fields = [
        _field(id="full_name", label="Full Name", required=True),
        _field(id="email", type="email", label="Email", required=True),
        _field(id="phone", type="phone", label="Phone"),
    ]

    result = validate_form_data({"email": "bad", "phone": "123"}, fields)

    assert result.errors == {
        "full_name": "Full Name is required",
        "email": "Invalid email format",
        "phone": "Invalid phone number",
    }


def test_checkbox_accepts_list_of_strings():
    fields = [_field(id="interests", type="checkbox", label="Interests")]

    assert validate_form_data({"interests": ["Design", "Data"]}, fields).is_valid


@pytest.mark.parametrize(
    "field_type, value",
    [
        ("text", ["a", "b"]),
        ("checkbox", ["Design", 3]),
        ("text", {"nested": "object"}),
        ("dropdown", True),
        ("email", {"address": "ada@example.com"}),
    ],
)
def test_malformed_values_become_field_errors(field_type, value):
    fields = [_field(id="answer", type=field_type, label="Answer")]

    result = validate_form_data({"answer": value}, fields)

    assert result.errors == {"answer": "Invalid value for Answer"}


def test_non_mapping_submission_is_treated_as_empty():
    fields = [_field(id="full_name", label="Full Name", required=True)]

    result = validate_form_data(["not", "a", "mapping"], fields)

    assert result.errors == {"full_name": "Full Name is required"}


def test_unknown_keys_are_ignored():
    fields = [_field(id="full_name", label="Full Name", required=True)]

    result = validate_form_data({"full_name": "Ada", "injected": "x"}, fields)

    assert result.is_valid


def test_is_empty():
    assert is_empty(None)
    assert is_empty("")
    assert is_empty([])
    assert not is_empty(" ")
    assert not is_empty(0)
    assert not is_empty(["a"])
