"""
File parsers module.
"""

from parsers.csv_parser import (
    parse_csv,
    detect_headers,
    ParsedCSV,
    ParsedRow,
)

__all__ = [
    "parse_csv",
    "detect_headers",
    "ParsedCSV",
    "ParsedRow",
]
