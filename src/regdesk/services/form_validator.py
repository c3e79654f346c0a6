"""Validation of submitted form data against a form schema.

Rules, applied per field in schema order:
- required and empty -> "<label> is required"
- optional and empty -> no further checks
- type check for the field kind (email, phone)
- declared constraints: length bounds, regex pattern, numeric bounds

The first error on a field wins. Errors on different fields accumulate.
Malformed input never raises; it turns into an error on that field.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from regdesk.models.field_type import FieldType
from regdesk.models.form_field import FormFieldDefinition

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
PHONE_PATTERN = re.compile(r"\+?[1-9]\d{9,14}")
# Plain decimal notation only; no underscores, inf or nan
NUMBER_PATTERN = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")
PHONE_SEPARATORS = re.compile(r"[\s-]")

# Kinds that legitimately submit several values at once
MULTI_VALUE_KINDS = {FieldType.CHECKBOX}


@dataclass
class ValidationResult:
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def is_empty(value: Any) -> bool:
    """Absent, empty string or empty selection"""
    return value is None or value == "" or (isinstance(value, list) and not value)


def _check_none(field_def: FormFieldDefinition, value: str) -> Optional[str]:
    return None


def _check_email(field_def: FormFieldDefinition, value: str) -> Optional[str]:
    if not EMAIL_PATTERN.fullmatch(value):
        return "Invalid email format"
    return None


def _check_phone(field_def: FormFieldDefinition, value: str) -> Optional[str]:
    if not PHONE_PATTERN.fullmatch(PHONE_SEPARATORS.sub("", value)):
        return "Invalid phone number"
    return None


TypeCheck = Callable[[FormFieldDefinition, str], Optional[str]]

# One entry per FieldType member; tests assert the table stays exhaustive
TYPE_CHECKS: Dict[FieldType, TypeCheck] = {
    FieldType.TEXT: _check_none,
    FieldType.TEXTAREA: _check_none,
    FieldType.EMAIL: _check_email,
    FieldType.PHONE: _check_phone,
    FieldType.DROPDOWN: _check_none,
    FieldType.CHECKBOX: _check_none,
    FieldType.RADIO: _check_none,
    FieldType.DATE: _check_none,
    FieldType.TIME: _check_none,
    FieldType.IMAGE: _check_none,
}


def _as_text(value: Any) -> Optional[str]:
    """Scalar submissions as text; None for shapes a single-value field can't hold"""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _check_constraints(field_def: FormFieldDefinition, value: str) -> Optional[str]:
    rules = field_def.validation
    if rules is None:
        return None

    if rules.min_length is not None and len(value) < rules.min_length:
        return f"Minimum {rules.min_length} characters required"

    if rules.max_length is not None and len(value) > rules.max_length:
        return f"Maximum {rules.max_length} characters allowed"

    if rules.pattern:
        try:
            matched = re.search(rules.pattern, value) is not None
        except re.error:
            logger.warning(
                f"Field '{field_def.id}' declares an invalid pattern: {rules.pattern!r}"
            )
            matched = False
        if not matched:
            return f"Invalid format for {field_def.label}"

    if rules.min is not None or rules.max is not None:
        candidate = value.strip()
        if not NUMBER_PATTERN.fullmatch(candidate):
            return f"{field_def.label} must be a valid number"
        number = float(candidate)
        if rules.min is not None and number < rules.min:
            return f"Minimum value is {_format_bound(rules.min)}"
        if rules.max is not None and number > rules.max:
            return f"Maximum value is {_format_bound(rules.max)}"

    return None


def _format_bound(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def _validate_field(field_def: FormFieldDefinition, value: Any) -> Optional[str]:
    if is_empty(value):
        if field_def.required:
            return f"{field_def.label} is required"
        return None

    if isinstance(value, list):
        if field_def.type not in MULTI_VALUE_KINDS or not all(
            isinstance(item, str) for item in value
        ):
            return f"Invalid value for {field_def.label}"
        return None

    text = _as_text(value)
    if text is None:
        return f"Invalid value for {field_def.label}"

    error = TYPE_CHECKS[field_def.type](field_def, text)
    if error:
        return error

    return _check_constraints(field_def, text)


def validate_form_data(
    form_data: Mapping[str, Any], fields: Iterable[FormFieldDefinition]
) -> ValidationResult:
    """
    Validate submitted values against the form's field definitions.

    Args:
        form_data: Mapping of field id -> submitted value
        fields: Field definitions in schema order

    Returns:
        ValidationResult; ``errors`` maps field id -> human readable message
    """
    if not isinstance(form_data, Mapping):
        form_data = {}

    result = ValidationResult()
    for field_def in fields:
        error = _validate_field(field_def, form_data.get(field_def.id))
        if error:
            result.errors[field_def.id] = error
    return result
