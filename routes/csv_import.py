"""
CSV import API routes.

POST /api/csv-mapper              preview or bulk import mapped rows
POST /api/csv-mapper/auto-detect  suggest a column mapping
"""

from typing import Union
from fastapi import APIRouter, Depends
import structlog

from models.csv_import import (
    AutoDetectRequest,
    AutoDetectResponse,
    CSVImportRequest,
    CSVImportResponse,
    CSVPreviewResponse,
    ImportOutcome,
)
from services.csv_import_service import CSVImportService, get_csv_import_service
from routes.errors import handle_error, require_sme_id
from exceptions import BulkImportError

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/csv-mapper", response_model=Union[CSVPreviewResponse, CSVImportResponse])
async def map_csv(
    data: CSVImportRequest,
    sme_id: str = Depends(require_sme_id),
    service: CSVImportService = Depends(get_csv_import_service)
):
    """
    Map CSV columns onto a form schema.

    preview: returns rowCount, sampleRows (first rows) and mappedRows.
    import: writes every row as a NEW order in one bulk insert.

    Raises:
        401: x-sme-id header missing
        400: Missing fields, invalid mode, or malformed CSV
        403: Schema not found or not owned by caller
        500: Bulk insert failed (successCount is 0)
    """
    try:
        result = service.import_csv(
            sme_id=sme_id,
            raw_text=data.raw_text,
            schema_id=data.schema_id,
            mapping=data.mapping,
            mode=data.mode
        )

        if isinstance(result, ImportOutcome):
            if not result.succeeded:
                raise BulkImportError(result.total, result.error)
            return CSVImportResponse(
                success_count=result.success_count,
                message=f"Successfully created {result.success_count} orders"
            )

        return result

    except Exception as e:
        return handle_error(e)


@router.post("/csv-mapper/auto-detect", response_model=AutoDetectResponse)
async def auto_detect_columns(
    data: AutoDetectRequest,
    sme_id: str = Depends(require_sme_id),
    service: CSVImportService = Depends(get_csv_import_service)
):
    """
    Suggest a mapping from CSV headers to form fields.

    Headers match a field by label or key, ignoring case. Unmatched
    headers are listed in csvHeaders but absent from suggestions.

    Raises:
        401: x-sme-id header missing
        400: Missing fields
        500: Form fields could not be loaded
    """
    try:
        return service.auto_detect(
            sme_id=sme_id,
            raw_text=data.raw_text,
            schema_id=data.schema_id
        )

    except Exception as e:
        return handle_error(e)
