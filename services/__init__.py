"""
Business logic services.

Each service handles one domain area.
"""

from services.form_schema_service import FormSchemaService, get_form_schema_service
from services.csv_import_service import CSVImportService, get_csv_import_service
from services.whatsapp_log_service import WhatsAppLogService, get_whatsapp_log_service
from services.otp_cleanup_service import OtpCleanupScheduler, cleanup_expired_otps
from services.identity import require_identity

__all__ = [
    "FormSchemaService",
    "get_form_schema_service",
    "CSVImportService",
    "get_csv_import_service",
    "WhatsAppLogService",
    "get_whatsapp_log_service",
    "OtpCleanupScheduler",
    "cleanup_expired_otps",
    "require_identity",
]
