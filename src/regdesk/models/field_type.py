"""Enums for the application"""

from enum import Enum


class FieldType(str, Enum):
    """Enum for registration form field types"""

    TEXT = "text"
    TEXTAREA = "textarea"
    EMAIL = "email"
    PHONE = "phone"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    DATE = "date"
    TIME = "time"
    IMAGE = "image"
