"""
WOT Orders Backend - Main Application

FastAPI application entry point.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import structlog

from config import settings, check_connection, get_supabase_client
from exceptions import AppError
from services.otp_cleanup_service import OtpCleanupScheduler
from routes.errors import handle_error

logging.basicConfig(format="%(message)s", level=settings.log_level)

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup: Check database connection, start OTP cleanup
    Shutdown: Stop OTP cleanup
    """
    # Startup
    logger.info(
        "application_starting",
        environment=settings.environment,
        debug=settings.debug,
        twilio_configured=settings.twilio_configured
    )

    db_status = check_connection()
    if db_status["status"] == "healthy":
        logger.info("database_connected", form_schemas=db_status["form_schemas_count"])
    else:
        logger.error("database_connection_failed", error=db_status.get("error"))

    scheduler = None
    if settings.otp_cleanup_enabled:
        scheduler = OtpCleanupScheduler(
            get_supabase_client,
            interval_seconds=settings.otp_cleanup_interval_minutes * 60
        )
        scheduler.start()

    yield

    # Shutdown
    if scheduler is not None:
        await scheduler.stop()
    logger.info("application_shutting_down")


# Create FastAPI app
app = FastAPI(
    title="WOT Orders Backend",
    description="Order tracking, CSV bulk import and WhatsApp notifications for small merchants",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===================
# ROUTES
# ===================

@app.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        Basic health status and database connection state
    """
    db_status = check_connection()

    return {
        "status": "healthy" if db_status["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "database": db_status
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Application errors raised outside a route body (e.g. in dependencies)."""
    return handle_error(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors (400)."""
    logger.info(
        "request_validation_failed",
        path=request.url.path,
        errors=len(exc.errors())
    )

    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request body",
                "details": {
                    "errors": [
                        {"loc": list(e.get("loc", [])), "msg": e.get("msg")}
                        for e in exc.errors()
                    ]
                },
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler.

    Catches unhandled exceptions and returns standard error format.
    """
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.expose_error_details else None,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


# ===================
# INCLUDE ROUTERS
# ===================
from routes.csv_import import router as csv_import_router
from routes.forms import router as forms_router
from routes.whatsapp import router as whatsapp_router

app.include_router(csv_import_router, prefix="/api", tags=["CSV Import"])
app.include_router(forms_router, prefix="/api", tags=["Forms"])
app.include_router(whatsapp_router, prefix="/api", tags=["WhatsApp"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
