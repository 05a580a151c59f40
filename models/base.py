"""
Base schemas and mixins for all models.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Allow ORM objects (from_attributes)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class CamelSchema(BaseModel):
    """
    Base for request/response bodies exchanged with the dashboard.

    Fields are snake_case in Python and camelCase on the wire. Strings are
    NOT trimmed: CSV text and column names must reach the parser verbatim.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True
    )


class TimestampMixin(BaseModel):
    """Add timestamps to response models."""
    created_at: datetime
    updated_at: Optional[datetime] = None
