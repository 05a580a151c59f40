"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.csv_import import router as csv_import_router
from routes.forms import router as forms_router
from routes.whatsapp import router as whatsapp_router

__all__ = [
    "csv_import_router",
    "forms_router",
    "whatsapp_router",
]
