"""Tabular word sources (CSV and spreadsheet uploads)."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

import openpyxl

from .errors import InvalidFileTypeError, ParseError

logger = logging.getLogger(__name__)

ACCEPTED_MEDIA_TYPES = frozenset(
    {
        "text/csv",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
)
ACCEPTED_EXTENSIONS = (".csv", ".xlsx", ".xls")


@dataclass
class Table:
    columns: List[str]
    rows: List[List[str]] = field(default_factory=list)

    def validate(self) -> None:
        if not self.columns:
            raise ParseError("Table has no header row")
        for idx, row in enumerate(self.rows, start=1):
            if not all(isinstance(cell, str) for cell in row):
                raise ParseError(f"Row {idx} contains non-text cells")


def _cell_text(value: object) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def table_from_rows(raw_rows: Sequence[Sequence[object]], source: str) -> Table:
    """Build a Table from raw rows where row 0 is the header.

    Column names are positional; their count comes from the header row alone.
    """
    if not raw_rows:
        raise ParseError(f"{source} file is empty")
    header = raw_rows[0]
    columns = [f"Column {index + 1}" for index in range(len(header))]
    rows = [[_cell_text(cell) for cell in row] for row in raw_rows[1:]]
    return Table(columns=columns, rows=rows)


def parse_csv(data: bytes) -> Table:
    try:
        text = data.decode("utf-8-sig")
        reader = csv.reader(io.StringIO(text, newline=""))
        raw_rows = [row for row in reader if any(cell.strip() for cell in row)]
    except (UnicodeDecodeError, csv.Error) as e:
        raise ParseError(f"CSV parsing error: {e}") from e
    return table_from_rows(raw_rows, "CSV")


def parse_xlsx(data: bytes) -> Table:
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except Exception as e:
        raise ParseError(f"XLSX parsing error: {e}") from e
    try:
        sheet = workbook.worksheets[0]
        raw_rows = [
            list(row)
            for row in sheet.iter_rows(values_only=True)
            if any(cell is not None and str(cell).strip() for cell in row)
        ]
    finally:
        workbook.close()
    return table_from_rows(raw_rows, "XLSX")


def is_valid_file_type(filename: str, media_type: Optional[str] = None) -> bool:
    if media_type and media_type in ACCEPTED_MEDIA_TYPES:
        return True
    return filename.endswith(ACCEPTED_EXTENSIONS)


def load_table(filename: str, data: bytes, media_type: Optional[str] = None) -> Table:
    if not is_valid_file_type(filename, media_type):
        raise InvalidFileTypeError("Please upload a CSV or XLSX file")
    if filename.endswith(".csv") or media_type == "text/csv":
        table = parse_csv(data)
    elif filename.endswith(".xls"):
        raise ParseError("Legacy .xls workbooks are not supported; save the sheet as .xlsx or .csv")
    else:
        table = parse_xlsx(data)
    logger.debug("Loaded %s: %d columns, %d data rows", filename, len(table.columns), len(table.rows))
    return table


def load_table_file(path: Path) -> Table:
    return load_table(path.name, path.read_bytes())
