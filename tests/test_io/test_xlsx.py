"""Tests for workbook saving and reading."""

from datetime import date, datetime

import pytest
from openpyxl import Workbook, load_workbook

from stigqter.exceptions import ParseError
from stigqter.io import xlsx


def test_emass_date():
    assert xlsx.emass_date(date(2024, 12, 1)) == "01-Dec-2024"


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ""),
        ("  Compliant ", "Compliant"),
        (366, "366"),
        (366.0, "366"),
        (1.5, "1.5"),
        (datetime(2025, 2, 3, 9, 30), "03-Feb-2025"),
    ],
)
def test_text(value, expected):
    assert xlsx.text(value) == expected


def test_save_and_read(temp_dir):
    wb = Workbook()
    ws = wb.active
    ws.title = "Data"
    xlsx.append_row(ws, ["CCI", "Note"])
    xlsx.append_row(ws, ["000366", "=cmd|' /C calc'!A0"])
    xlsx.append_row(ws, ["000015", ""])
    target = temp_dir / "out" / "data.xlsx"
    xlsx.save(wb, target)

    assert target.read_bytes()[:2] == b"PK"
    assert load_workbook(target)["Data"]["B2"].data_type == "s"
    assert xlsx.read_rows(target, "Data") == [
        ["CCI", "Note"],
        ["000366", "=cmd|' /C calc'!A0"],
        ["000015", ""],
    ]


def test_missing_sheet_reads_active(temp_dir):
    wb = Workbook()
    wb.active.title = "Export"
    wb.active.append(["CCI"])
    path = temp_dir / "export.xlsx"
    wb.save(path)
    assert xlsx.read_rows(path, "Test Result Import") == [["CCI"]]


def test_not_a_workbook(temp_dir):
    path = temp_dir / "tr.xlsx"
    path.write_bytes(b"Control,CCI\n")
    with pytest.raises(ParseError, match="Not an xlsx workbook"):
        xlsx.read_rows(path)
