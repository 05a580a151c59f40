"""
CSV import service.

Runs the bulk order import: validate input, check schema ownership, parse
the CSV, map columns onto form field keys, then either return the mapped
rows (preview) or write them to orders in a single bulk insert (import).

The bulk insert is all-or-nothing from this service's point of view: one
request for the whole batch, and the outcome is either every row or none.
"""

from datetime import datetime, timezone
from typing import Optional, Union
import time
import structlog
from supabase import Client

from config import get_supabase_client, settings
from models.csv_import import (
    AutoDetectResponse,
    CSVPreviewResponse,
    ImportMode,
    ImportOutcome,
    NormalizedRecord,
)
from parsers.csv_parser import parse_csv, detect_headers
from services.column_mapper import map_rows, suggest_mapping
from services.form_schema_service import FormSchemaService
from services.identity import require_identity
from exceptions import (
    InvalidImportModeError,
    SchemaUnauthorizedError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


# Field keys that also live as top-level columns on orders
ORDER_COLUMNS = ("customer_name", "customer_phone", "delivery_address", "price_total")


def _require_fields(**values) -> None:
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ValidationError(
            message=f"{', '.join(values)} are required",
            code="MISSING_FIELDS",
            details={"missing": missing}
        )


def _parse_mode(mode: Optional[str]) -> ImportMode:
    if mode is None:
        return ImportMode.PREVIEW
    try:
        return ImportMode(mode)
    except ValueError:
        raise InvalidImportModeError(mode)


class CSVImportService:
    """
    CSV import pipeline.

    Both the store client and the schema resolver are injected, so each
    request works against whatever client it was given.
    """

    def __init__(
        self,
        db: Client,
        schemas: Optional[FormSchemaService] = None,
        sample_size: int = 5
    ):
        self.db = db
        self.schemas = schemas or FormSchemaService(db)
        self.table = "orders"
        self.sample_size = sample_size

    # ===================
    # IMPORT
    # ===================

    def import_csv(
        self,
        sme_id: Optional[str],
        raw_text: Optional[str],
        schema_id: Optional[str],
        mapping: Optional[dict[str, str]],
        mode: Optional[str] = None
    ) -> Union[CSVPreviewResponse, ImportOutcome]:
        """
        Map a CSV onto a form schema and preview or import the result.

        Input is checked before anything is parsed or fetched, in this
        order: caller identity, required fields, mode. Then the schema must
        belong to the caller.

        Args:
            sme_id: Caller identity
            raw_text: Raw CSV text
            schema_id: Target form schema
            mapping: CSV column -> form field key
            mode: "preview" (default) or "import"

        Returns:
            CSVPreviewResponse in preview mode, ImportOutcome in import mode

        Raises:
            AuthenticationError: No caller identity
            ValidationError: Missing fields or unknown mode
            SchemaUnauthorizedError: Schema missing or not owned by caller
            CSVParseError: Malformed CSV
        """
        sme_id = require_identity(sme_id)
        _require_fields(rawText=raw_text, schemaId=schema_id, mapping=mapping)
        import_mode = _parse_mode(mode)

        if not self.schemas.belongs_to(schema_id, sme_id):
            raise SchemaUnauthorizedError()

        parsed = parse_csv(raw_text)
        records = map_rows(parsed.rows, mapping)

        logger.info(
            "csv_rows_mapped",
            sme_id=sme_id,
            schema_id=schema_id,
            mode=import_mode.value,
            rows=len(records),
            fields=len(set(mapping.values()))
        )

        if import_mode == ImportMode.PREVIEW:
            return self.build_preview(records)

        return self.bulk_insert(records, schema_id, sme_id)

    def build_preview(self, records: list[NormalizedRecord]) -> CSVPreviewResponse:
        """Preview response: all rows plus the first sample_size."""
        return CSVPreviewResponse(
            row_count=len(records),
            sample_rows=records[:self.sample_size],
            mapped_rows=records,
        )

    def bulk_insert(
        self,
        records: list[NormalizedRecord],
        schema_id: str,
        sme_id: str
    ) -> ImportOutcome:
        """
        Persist all records as NEW orders in one insert request.

        Returns:
            ImportOutcome with success_count == total, or 0 and the store
            error when the insert fails
        """
        total = len(records)
        if total == 0:
            logger.info("csv_import_empty", schema_id=schema_id, sme_id=sme_id)
            return ImportOutcome(total=0, success_count=0)

        batch_id = str(int(time.time() * 1000))[-6:]
        created_at = datetime.now(timezone.utc).isoformat()

        rows = [
            self._order_row(record, index, batch_id, created_at, schema_id, sme_id)
            for index, record in enumerate(records)
        ]

        try:
            self.db.table(self.table).insert(rows).execute()
        except Exception as e:
            logger.error(
                "csv_bulk_insert_failed",
                schema_id=schema_id,
                sme_id=sme_id,
                total=total,
                error=str(e)
            )
            return ImportOutcome(total=total, success_count=0, error=str(e))

        logger.info(
            "csv_bulk_insert_complete",
            schema_id=schema_id,
            sme_id=sme_id,
            total=total
        )
        return ImportOutcome(total=total, success_count=total)

    @staticmethod
    def _order_row(
        record: NormalizedRecord,
        index: int,
        batch_id: str,
        created_at: str,
        schema_id: str,
        sme_id: str
    ) -> dict:
        row = {
            "sme_id": sme_id,
            "schema_id": schema_id,
            "readable_id": f"BLK{batch_id}{index}",
            "status": "NEW",
            "form_data": record,
            "created_at": created_at,
        }
        for column in ORDER_COLUMNS:
            if column in record:
                row[column] = record[column]
        return row

    # ===================
    # AUTO-DETECT
    # ===================

    def auto_detect(
        self,
        sme_id: Optional[str],
        raw_text: Optional[str],
        schema_id: Optional[str]
    ) -> AutoDetectResponse:
        """
        Suggest a column mapping from the CSV header.

        Nothing is written.

        Raises:
            AuthenticationError: No caller identity
            ValidationError: Missing fields
            SchemaLookupError: Form fields could not be loaded
        """
        require_identity(sme_id)
        _require_fields(rawText=raw_text, schemaId=schema_id)

        headers = detect_headers(raw_text)
        fields = self.schemas.get_fields(schema_id)
        suggestions = suggest_mapping(headers, fields)

        logger.info(
            "csv_columns_detected",
            schema_id=schema_id,
            headers=len(headers),
            matched=len(suggestions)
        )

        return AutoDetectResponse(
            csv_headers=headers,
            form_fields=fields,
            suggestions=suggestions,
        )


def get_csv_import_service() -> CSVImportService:
    """Build a CSVImportService on the shared Supabase client."""
    return CSVImportService(
        get_supabase_client(),
        sample_size=settings.import_sample_size
    )
