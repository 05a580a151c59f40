"""
Shared route helpers: error conversion and caller identity.
"""

from typing import Optional
from fastapi import Header
from fastapi.responses import JSONResponse
import structlog

from config import settings
from exceptions import AppError
from services.identity import require_identity

logger = structlog.get_logger(__name__)


def handle_error(e: Exception) -> JSONResponse:
    """
    Convert exception to JSON response.

    Server-side (5xx) details are only returned in debug mode, and never
    in production.
    """
    if isinstance(e, AppError):
        if e.status_code >= 500:
            logger.error(
                "request_failed",
                code=e.code,
                error=e.message,
                details=e.details
            )
        include_details = e.status_code < 500 or settings.expose_error_details
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict(include_details)
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "Internal server error",
                "details": str(e) if settings.expose_error_details else None
            }
        }
    )


def require_sme_id(x_sme_id: Optional[str] = Header(None)) -> str:
    """
    Caller identity from the x-sme-id header.

    Runs as a dependency, so a missing identity is rejected before the
    request body is validated.
    """
    return require_identity(x_sme_id)
