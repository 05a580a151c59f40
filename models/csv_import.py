"""
CSV import request/response models.

Request bodies accept both the current field names (rawText, mapping, mode)
and the names used by earlier dashboard builds (csvData, columnMapping,
importMode). Every field is optional here so the service can report missing
input with its own error ordering (identity first, then body fields).
"""

from pydantic import BaseModel, Field, AliasChoices
from typing import Optional
from enum import Enum

from models.base import CamelSchema
from models.form_schema import FormField


# Field key -> raw cell text, or None when the column was absent or empty
NormalizedRecord = dict[str, Optional[str]]


class ImportMode(str, Enum):
    """What the import endpoint does with the mapped rows."""
    PREVIEW = "preview"
    IMPORT = "import"


class CSVImportRequest(CamelSchema):
    """Body of POST /api/csv-mapper."""

    raw_text: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("rawText", "csvData", "raw_text"),
        description="Raw CSV text, header line first"
    )
    schema_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("schemaId", "schema_id"),
        description="Target form schema"
    )
    mapping: Optional[dict[str, str]] = Field(
        None,
        validation_alias=AliasChoices("mapping", "columnMapping"),
        description="CSV column name -> form field key"
    )
    mode: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("mode", "importMode"),
        description="preview (default) or import"
    )


class AutoDetectRequest(CamelSchema):
    """Body of POST /api/csv-mapper/auto-detect."""

    raw_text: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("rawText", "csvData", "raw_text")
    )
    schema_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("schemaId", "schema_id")
    )


class CSVPreviewResponse(CamelSchema):
    """Mapped rows returned in preview mode. Nothing is written."""

    success: bool = True
    row_count: int
    sample_rows: list[NormalizedRecord]
    mapped_rows: list[NormalizedRecord]


class CSVImportResponse(CamelSchema):
    """Result of a successful bulk import."""

    success: bool = True
    success_count: int
    message: str


class AutoDetectResponse(CamelSchema):
    """Headers, schema fields and the suggested column mapping."""

    success: bool = True
    csv_headers: list[str]
    form_fields: list[FormField]
    suggestions: dict[str, str]


class ImportOutcome(BaseModel):
    """
    Aggregate result of one bulk write.

    success_count is either 0 (the write failed, error is set) or total.
    """

    total: int
    success_count: int
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
