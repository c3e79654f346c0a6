"""Field definitions stored inside a registration form"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from regdesk.models.field_type import FieldType


class FieldValidation(BaseModel):
    """Optional constraints declared on a form field"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    min_length: Optional[int] = Field(default=None, ge=0)
    max_length: Optional[int] = Field(default=None, ge=0)
    pattern: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None


class FormFieldDefinition(BaseModel):
    """A single field of a registration form.

    Accepts the camelCase payload produced by the form builder
    (``helpText``, ``defaultValue``, ``minLength`` ...) as well as snake_case.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(min_length=1)
    type: FieldType
    label: str = Field(min_length=1)
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    required: bool = False
    validation: Optional[FieldValidation] = None
    options: Optional[List[str]] = None
    default_value: Optional[str] = None
    # Stored for the UI only; the server never evaluates visibility rules
    conditional_logic: Optional[dict[str, Any]] = None
    order: int = 0
