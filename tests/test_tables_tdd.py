from __future__ import annotations

import io

import openpyxl
import pytest

from wordbingo.errors import InvalidFileTypeError, ParseError
from wordbingo.tables import Table, is_valid_file_type, load_table, parse_csv, parse_xlsx


def _xlsx_bytes(rows):
    wb = openpyxl.Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_csv_header_row_is_excluded_and_blank_lines_skipped():
    table = parse_csv(b"word,category\nalpha,x\n\nbeta,y,extra\n")
    assert table.columns == ["Column 1", "Column 2"]
    assert table.rows == [["alpha", "x"], ["beta", "y", "extra"]]


def test_csv_with_bom_and_quotes():
    table = parse_csv('\ufeffname\n"Smith, John"\n'.encode("utf-8"))
    assert table.rows == [["Smith, John"]]


def test_empty_sources_raise_parse_error():
    with pytest.raises(ParseError, match="empty"):
        parse_csv(b"")
    with pytest.raises(ParseError, match="empty"):
        parse_xlsx(_xlsx_bytes([]))


def test_xlsx_first_sheet_cells_become_text():
    data = _xlsx_bytes([["Word", "Points"], ["lion", 3], [None, 4], ["tiger", None]])
    table = parse_xlsx(data)
    assert table.columns == ["Column 1", "Column 2"]
    assert table.rows == [["lion", "3"], ["", "4"], ["tiger", ""]]


def test_garbage_xlsx_is_a_parse_error():
    with pytest.raises(ParseError):
        parse_xlsx(b"not a zip file")


@pytest.mark.parametrize(
    "name, media_type, ok",
    [
        ("words.csv", None, True),
        ("words.xlsx", None, True),
        ("words.xls", None, True),
        ("upload", "text/csv", True),
        ("upload", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", True),
        ("words.txt", "text/plain", False),
        ("words.pdf", None, False),
    ],
)
def test_file_type_allow_list(name, media_type, ok):
    assert is_valid_file_type(name, media_type) is ok


def test_load_table_rejects_and_dispatches():
    with pytest.raises(InvalidFileTypeError):
        load_table("words.txt", b"a\nb")
    assert load_table("w.csv", b"h\nx\n").rows == [["x"]]
    assert load_table("w.xlsx", _xlsx_bytes([["h"], ["y"]])).rows == [["y"]]
    with pytest.raises(ParseError):
        load_table("old.xls", b"\xd0\xcf\x11\xe0")


def test_table_validation():
    with pytest.raises(ParseError):
        Table(columns=[], rows=[]).validate()
    with pytest.raises(ParseError):
        Table(columns=["Column 1"], rows=[[1]]).validate()  # type: ignore[list-item]
