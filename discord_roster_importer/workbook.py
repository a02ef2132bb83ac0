from __future__ import annotations

"""Spreadsheet reading helpers.

Only the first sheet of a workbook is read. Cells are converted to text so
that extractors can work with plain positional string rows, the same way
a CSV row looks after tokenizing.
"""

import logging
import zipfile
from datetime import date, datetime, time
from io import BytesIO
from typing import Any, Iterable
from xml.etree.ElementTree import ParseError

import openpyxl
import xlrd
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)


class WorkbookReadError(Exception):
    """Raised when spreadsheet bytes cannot be opened."""


def cell_text(value: Any) -> str:
    """Convert a raw cell value to text.

    ``None`` becomes ``''``, integral floats lose their ``.0`` (IDs are
    often stored as numbers), dates use ISO format.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def normalize_row(values: Iterable[Any]) -> list[str]:
    """Convert cells to text and drop trailing blank cells."""
    row = [cell_text(v) for v in values]
    while row and not row[-1].strip():
        row.pop()
    return row


# ParseError and lxml's XMLSyntaxError both derive from SyntaxError
_XLSX_ERRORS = (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError, ParseError, SyntaxError)


def _read_xlsx(data: bytes) -> list[list[str]]:
    try:
        wb = openpyxl.load_workbook(BytesIO(data), read_only=True, data_only=True)
    except _XLSX_ERRORS as e:
        raise WorkbookReadError(f"cannot open workbook: {e}") from e
    try:
        if not wb.worksheets:
            return []
        sheet = wb.worksheets[0]
        # read-only sheets parse their XML lazily, while rows are iterated
        return [normalize_row(values) for values in sheet.iter_rows(values_only=True)]
    except _XLSX_ERRORS as e:
        raise WorkbookReadError(f"cannot read first sheet: {e}") from e
    finally:
        wb.close()


def _read_xls(data: bytes) -> list[list[str]]:
    try:
        book = xlrd.open_workbook(file_contents=data)
    except (xlrd.XLRDError, OSError, ValueError, AssertionError) as e:
        raise WorkbookReadError(f"cannot open legacy workbook: {e}") from e
    if book.nsheets == 0:
        return []
    sheet = book.sheet_by_index(0)
    rows: list[list[str]] = []
    for r in range(sheet.nrows):
        values = []
        for cell in sheet.row(r):
            if cell.ctype == xlrd.XL_CELL_DATE:
                values.append(xlrd.xldate.xldate_as_datetime(cell.value, book.datemode))
            else:
                values.append(cell.value)
        rows.append(normalize_row(values))
    return rows


def read_first_sheet(data: bytes, legacy_format: bool = False) -> list[list[str]]:
    """Read the first sheet of a workbook as rows of text cells.

    Parameters
    ----------
    data : bytes
        Raw workbook file content.
    legacy_format : bool, default False
        Read as a BIFF ``.xls`` file with ``xlrd`` instead of ``openpyxl``.

    Returns
    -------
    list of list of str
        One entry per sheet row; blank rows are empty lists.

    Raises
    ------
    WorkbookReadError
        If the content is not a readable workbook.
    """
    if not data:
        raise WorkbookReadError("empty workbook content")
    rows = _read_xls(data) if legacy_format else _read_xlsx(data)
    logger.debug("Read %d row(s) from %s workbook", len(rows), "xls" if legacy_format else "xlsx")
    return rows
