"""
Column mapping between CSV headers and form fields.

Pure functions, no I/O. Both matchers resolve ties by input order:
- map_row: when several CSV columns target one field key, the first column
  in mapping order supplies the value.
- suggest_mapping: when several fields match one header, the first field in
  schema order wins.
"""

from typing import Iterable, Optional

from models.csv_import import NormalizedRecord
from models.form_schema import FormField
from parsers.csv_parser import ParsedRow


def resolve_sources(mapping: dict[str, str]) -> dict[str, str]:
    """
    Invert a column mapping to field key -> source column.

    Args:
        mapping: CSV column name -> form field key

    Returns:
        One entry per distinct field key, in order of first appearance,
        pointing at the first column that targets it
    """
    sources: dict[str, str] = {}
    for column, field_key in mapping.items():
        sources.setdefault(field_key, column)
    return sources


def map_row(
    row: ParsedRow,
    mapping: dict[str, str],
    sources: Optional[dict[str, str]] = None
) -> NormalizedRecord:
    """
    Project one parsed row onto the mapped field keys.

    The result always has exactly the field keys named in the mapping.
    A field gets its column's text when the column is present and non-empty,
    otherwise None.

    Args:
        row: Parsed CSV row
        mapping: CSV column name -> form field key
        sources: Precomputed resolve_sources(mapping), for batch callers
    """
    if sources is None:
        sources = resolve_sources(mapping)

    record: NormalizedRecord = {}
    for field_key, column in sources.items():
        value = row.get(column)
        record[field_key] = value if isinstance(value, str) and value != "" else None
    return record


def map_rows(rows: Iterable[ParsedRow], mapping: dict[str, str]) -> list[NormalizedRecord]:
    """Map every row, preserving input order."""
    sources = resolve_sources(mapping)
    return [map_row(row, mapping, sources) for row in rows]


def suggest_mapping(headers: Iterable[str], fields: list[FormField]) -> dict[str, str]:
    """
    Suggest a field key for each CSV header.

    A header matches a field when it equals the field's label or key,
    ignoring case. Headers with no match are left out.

    Example:
        headers ["Name", "PHONE"] with fields labelled "Name" and "Phone"
        -> {"Name": "customer_name", "PHONE": "customer_phone"}
    """
    candidates = [
        (f.label.casefold(), f.field_key.casefold(), f.field_key)
        for f in fields
    ]

    suggestions: dict[str, str] = {}
    for header in headers:
        normalized = header.casefold()
        for label, key, field_key in candidates:
            if normalized == label or normalized == key:
                suggestions[header] = field_key
                break
    return suggestions
