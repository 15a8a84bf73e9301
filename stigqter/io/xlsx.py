"""xlsx workbook reading and writing for the eMASS and findings reports.

Workbooks are written through :meth:`FO.atomic` so a failed save leaves the
previous report in place. Cell formatting is not carried.
"""

from __future__ import annotations
import zipfile
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from stigqter.core.logging import LOG
from stigqter.exceptions import ParseError
from stigqter.io.file_ops import FO

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def emass_date(value: date) -> str:
    """``dd-Mon-yyyy`` as eMASS expects it, independent of the locale."""
    return f"{value.day:02d}-{MONTHS[value.month - 1]}-{value.year}"


def text(value: Any) -> str:
    """Cell value as the string eMASS shows for it."""
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return emass_date(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def append_row(ws: Worksheet, values: Iterable[Any]) -> None:
    """Append a row; blank strings stay empty cells, ``=...`` stays text."""
    ws.append([None if v == "" else v for v in values])
    for cell in ws[ws.max_row]:
        if cell.data_type == "f":
            cell.data_type = "s"


def merge(ws: Worksheet, row: int, first: int, last: int) -> None:
    ws.merge_cells(start_row=row, start_column=first, end_row=row, end_column=last)


def save(wb: Workbook, target: Union[str, Path]) -> None:
    with FO.atomic(target, mode="wb") as fh:
        wb.save(fh)
    LOG.d(f"Workbook saved: {target}")


def read_rows(path: Union[str, Path], sheet: Optional[str] = None) -> List[List[str]]:
    """All rows of ``sheet`` (the active sheet when absent) as strings.

    Raises:
        ParseError: When the file is not an xlsx workbook
    """
    path = Path(path)
    try:
        wb = load_workbook(str(path), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError) as exc:
        raise ParseError(f"Not an xlsx workbook: {exc}", {"file": path.name}) from exc
    try:
        if sheet and sheet in wb.sheetnames:
            ws = wb[sheet]
        else:
            if sheet:
                LOG.w(f"{path.name} has no '{sheet}' sheet, reading '{wb.active.title}'")
            ws = wb.active
        return [[text(v) for v in row] for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()
