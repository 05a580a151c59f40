"""
CSV parser for bulk order imports.

Turns raw delimited text into header-indexed rows. Every cell stays text:
no type inference and no NA conversion, so "0801..." keeps its leading zero
and "NA" stays "NA".
"""

from dataclasses import dataclass, field
from io import StringIO
from typing import Optional
import structlog

import pandas as pd

from exceptions import CSVParseError

logger = structlog.get_logger(__name__)


# Column name -> raw cell text. A column is absent when the row is shorter
# than the header.
ParsedRow = dict[str, str]


@dataclass
class ParsedCSV:
    """Result of parsing CSV text."""
    headers: list[str] = field(default_factory=list)
    rows: list[ParsedRow] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def _records(raw_text: str) -> list[str]:
    """
    Split raw text into CSV records, dropping fully empty lines.

    A line break inside a quoted field continues the current record, so
    empty lines within quotes are kept. Whitespace-only lines are records.
    """
    records: list[str] = []
    current = ""
    in_quotes = False

    for line in StringIO(raw_text, newline=""):
        if not in_quotes and line.strip("\r\n") == "":
            continue
        current += line
        # "" escapes keep the count even; an odd count opens or closes a field
        if line.count('"') % 2:
            in_quotes = not in_quotes
        if not in_quotes:
            records.append(current.rstrip("\r\n"))
            current = ""

    if current:
        records.append(current.rstrip("\r\n"))
    return records


def _read_frame(records: list[str]) -> pd.DataFrame:
    """
    Read records into an all-string DataFrame without a header row.

    The header line is kept as row 0 so duplicate column names are not
    mangled into "Name.1" style labels.

    Raises:
        CSVParseError: If the tokenizer rejects the text
    """
    if not records:
        return pd.DataFrame()

    try:
        return pd.read_csv(
            StringIO("\n".join(records)),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except pd.errors.ParserError as e:
        messages = [line.strip() for line in str(e).splitlines() if line.strip()]
        logger.warning("csv_parse_failed", errors=messages)
        raise CSVParseError(messages or ["Malformed CSV"]) from e


def _cell(value) -> Optional[str]:
    """Return the cell text, or None for padding pandas adds to short rows."""
    if isinstance(value, str):
        return value
    return None


def _headers_from(frame: pd.DataFrame) -> list[str]:
    raw = [_cell(v) or "" for v in frame.iloc[0].tolist()]
    return list(dict.fromkeys(raw))


def _row_from(columns: list[str], values: list) -> ParsedRow:
    row: ParsedRow = {}
    for column, value in zip(columns, values):
        text = _cell(value)
        if text is not None:
            # Duplicate header names collapse; the rightmost cell wins
            row[column] = text
    return row


def parse_csv(raw_text: str) -> ParsedCSV:
    """
    Parse CSV text with a header line.

    The first non-empty line names the columns. Each later non-empty line
    becomes one row keyed by those names, in input order. Only fully empty
    lines are skipped; a line of spaces is a row.

    Args:
        raw_text: Raw CSV text

    Returns:
        ParsedCSV with the de-duplicated header list and all data rows

    Raises:
        CSVParseError: If a line has more fields than the header, or the
            text is otherwise malformed. No partial result is returned.
    """
    frame = _read_frame(_records(raw_text))

    if frame.empty:
        return ParsedCSV()

    columns = [_cell(v) or "" for v in frame.iloc[0].tolist()]
    rows = [_row_from(columns, values) for values in frame.iloc[1:].values.tolist()]

    logger.debug("csv_parsed", columns=len(columns), rows=len(rows))

    return ParsedCSV(headers=_headers_from(frame), rows=rows)


def detect_headers(raw_text: str) -> list[str]:
    """
    Read just enough of the text to list the available column names.

    The first data row is used as the proof that headers exist: text with a
    header line but no data rows yields an empty list. Only the header line
    is tokenized, so a malformed data row never fails detection.

    Args:
        raw_text: Raw CSV text

    Returns:
        Column names in header order, duplicates removed
    """
    records = _records(raw_text)

    if len(records) < 2:
        return []

    try:
        frame = _read_frame(records[:1])
    except CSVParseError:
        return []

    if frame.empty:
        return []

    return _headers_from(frame)
