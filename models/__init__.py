"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    CamelSchema,
    TimestampMixin,
)
from models.form_schema import (
    FieldType,
    FormField,
    FormFieldCreate,
    FormSchemaCreate,
    FormSchemaUpdate,
    FormSchemaResponse,
)
from models.csv_import import (
    NormalizedRecord,
    ImportMode,
    CSVImportRequest,
    AutoDetectRequest,
    CSVPreviewResponse,
    CSVImportResponse,
    AutoDetectResponse,
    ImportOutcome,
)
from models.whatsapp import (
    OrderStatus,
    MessageStatus,
    WhatsAppSendRequest,
    WhatsAppSendResponse,
    WhatsAppLogResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "CamelSchema",
    "TimestampMixin",

    # Form schemas
    "FieldType",
    "FormField",
    "FormFieldCreate",
    "FormSchemaCreate",
    "FormSchemaUpdate",
    "FormSchemaResponse",

    # CSV import
    "NormalizedRecord",
    "ImportMode",
    "CSVImportRequest",
    "AutoDetectRequest",
    "CSVPreviewResponse",
    "CSVImportResponse",
    "AutoDetectResponse",
    "ImportOutcome",

    # WhatsApp
    "OrderStatus",
    "MessageStatus",
    "WhatsAppSendRequest",
    "WhatsAppSendResponse",
    "WhatsAppLogResponse",
]
