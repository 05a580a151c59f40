"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ExternalServiceError,
    DatabaseError,

    # CSV import
    CSVParseError,
    InvalidImportModeError,
    SchemaUnauthorizedError,
    SchemaLookupError,
    BulkImportError,

    # Form schemas
    FormSchemaNotFoundError,

    # WhatsApp
    InvalidPhoneNumberError,
    WhatsAppError,
)

__all__ = [
    # Base
    "AppError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ExternalServiceError",
    "DatabaseError",

    # CSV import
    "CSVParseError",
    "InvalidImportModeError",
    "SchemaUnauthorizedError",
    "SchemaLookupError",
    "BulkImportError",

    # Form schemas
    "FormSchemaNotFoundError",

    # WhatsApp
    "InvalidPhoneNumberError",
    "WhatsAppError",
]
