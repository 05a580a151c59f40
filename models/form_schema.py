"""
Form schema and field models.

A form schema is an SME-owned, ordered set of fields describing the shape of
an order record. CSV imports map spreadsheet columns onto these fields.
"""

from pydantic import Field
from typing import Any, Optional
from enum import Enum

from models.base import BaseSchema, TimestampMixin


class FieldType(str, Enum):
    """Input types a form field can declare."""
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    CHECKBOX = "checkbox"
    TEXTAREA = "textarea"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"


class FormField(BaseSchema):
    """One field of a form schema, as stored in form_fields."""

    field_key: str = Field(..., description="Key used in form_data")
    label: str = Field(..., description="Human label shown in the dashboard")
    type: Optional[FieldType] = Field(None, description="Declared input type")
    required: bool = Field(True, description="Whether the form requires a value")
    options: Optional[list[Any]] = None
    validation: Optional[dict[str, Any]] = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    field_order: int = 0


class FormFieldCreate(BaseSchema):
    """
    Field definition submitted when creating a schema.

    field_key defaults to field_<index> when omitted.
    """

    field_key: Optional[str] = Field(None, max_length=100)
    label: str = Field(..., min_length=1, max_length=200)
    type: FieldType = FieldType.TEXT
    required: bool = True
    options: Optional[list[Any]] = None
    validation: Optional[dict[str, Any]] = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = None


class FormSchemaCreate(BaseSchema):
    """Create a new form schema with its fields."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Form name",
        examples=["Cake orders"]
    )
    description: Optional[str] = None
    fields: list[FormFieldCreate] = Field(default_factory=list)


class FormSchemaResponse(BaseSchema, TimestampMixin):
    """Form schema with its ordered fields."""

    id: str
    sme_id: str
    name: str
    description: Optional[str] = None
    version: int = 1
    is_active: bool = True
    fields: list[FormField] = Field(default_factory=list)


class FormSchemaUpdate(BaseSchema):
    """
    Update a form schema.

    Omitted name/description are left unchanged. When fields is given, the
    schema's fields are replaced by the new list (an empty list removes them).
    """

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    fields: Optional[list[FormFieldCreate]] = None
