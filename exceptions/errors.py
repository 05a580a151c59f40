"""
Custom exception classes for the application.

Every error a route can return is an AppError subclass carrying its own
code and HTTP status.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "SCHEMA_UNAUTHORIZED")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self, include_details: bool = True) -> dict:
        """Convert to API response format."""
        return {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details if include_details else None,
                "timestamp": self.timestamp
            }
        }


class ValidationError(AppError):
    """Missing or malformed caller input (400)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=400,
            details=details
        )


class AuthenticationError(AppError):
    """Caller identity missing (401)."""

    def __init__(self, message: str = "SME ID not provided"):
        super().__init__(
            code="UNAUTHENTICATED",
            message=message,
            status_code=401
        )


class AuthorizationError(AppError):
    """Resource not owned by the caller (403)."""

    def __init__(
        self,
        message: str = "Not found or unauthorized",
        code: str = "UNAUTHORIZED"
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=403
        )


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper().replace(' ', '_')}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# CSV IMPORT ERRORS
# ===================

class CSVParseError(ValidationError):
    """Raw CSV text could not be parsed."""

    def __init__(self, errors: list[str]):
        super().__init__(
            code="CSV_PARSE_ERROR",
            message="Failed to parse CSV",
            details={"errors": errors}
        )
        self.errors = errors


class InvalidImportModeError(ValidationError):
    """Import mode is neither preview nor import."""

    def __init__(self, mode: str):
        super().__init__(
            code="INVALID_IMPORT_MODE",
            message="Invalid importMode",
            details={"provided": mode, "valid": ["preview", "import"]}
        )


class SchemaUnauthorizedError(AuthorizationError):
    """Schema missing or owned by another SME."""

    def __init__(self):
        super().__init__(
            code="SCHEMA_UNAUTHORIZED",
            message="Schema not found or unauthorized"
        )


class SchemaLookupError(AppError):
    """Form fields could not be loaded for a schema (500)."""

    def __init__(self, schema_id: str, message: str):
        super().__init__(
            code="SCHEMA_LOOKUP_FAILED",
            message="Failed to fetch form fields",
            status_code=500,
            details={"schema_id": schema_id, "reason": message}
        )


class BulkImportError(AppError):
    """The single bulk insert of an import failed; nothing was persisted."""

    def __init__(self, total: int, message: str):
        super().__init__(
            code="BULK_IMPORT_FAILED",
            message="Failed to bulk import orders",
            status_code=500,
            details={"total": total, "reason": message}
        )
        self.total = total

    def to_dict(self, include_details: bool = True) -> dict:
        body = super().to_dict(include_details)
        body["successCount"] = 0
        return body


# ===================
# FORM SCHEMA ERRORS
# ===================

class FormSchemaNotFoundError(NotFoundError):
    """Form schema not found."""

    def __init__(self, schema_id: str):
        super().__init__(
            resource="Form schema",
            identifier=schema_id,
            code="FORM_SCHEMA_NOT_FOUND"
        )


# ===================
# WHATSAPP ERRORS
# ===================

class InvalidPhoneNumberError(ValidationError):
    """Phone number is not a recognised Nigerian format."""

    def __init__(self, phone: str):
        super().__init__(
            code="INVALID_PHONE_NUMBER",
            message="Invalid phone number format. Use +234XXXXXXXXXX or 0XXXXXXXXXX",
            details={"provided": phone}
        )


class WhatsAppError(ExternalServiceError):
    """Twilio rejected or failed to deliver a WhatsApp message."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="whatsapp",
            message=message,
            details=details
        )
