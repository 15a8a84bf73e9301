"""eMASS Test Result export import (xlsx).

An export repeats the Compliance Status, Date Tested, Tested By and Test
Results headers: the first group is left for new results, the second holds
the Latest Test Result eMASS has on record, which is what gets stored.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union

from stigqter.db.manager import DbManager
from stigqter.db.models import CCI, print_cci
from stigqter.exceptions import ParseError, ValidationError
from stigqter.io import xlsx
from stigqter.xml.sanitizer import San
from stigqter.workers.base import Worker
from stigqter.workers.emass_report import SHEET

IMPORT_COLUMNS = {
    "Compliance Status": "import_compliance",
    "Date Tested": "import_date_tested",
    "Tested By": "import_tested_by",
    "Test Results": "import_test_results",
}


def header_index(rows: List[List[str]]) -> Optional[int]:
    """Index of the first row naming a ``CCI`` column."""
    for i, row in enumerate(rows):
        if any(c.strip() == "CCI" for c in row):
            return i
    return None


def column_map(header: List[str]) -> Dict[str, int]:
    """First position of CCI, last position of each import column."""
    positions: Dict[str, int] = {}
    for i, name in enumerate(c.strip() for c in header):
        if name == "CCI" and "CCI" not in positions:
            positions["CCI"] = i
        elif name in IMPORT_COLUMNS:
            positions[name] = i
    return positions


def parse_tr_export(rows: List[List[str]]) -> List[CCI]:
    """CCIs carrying the import fields found in the rows of a TR export.

    Raises:
        ParseError: When no header row names a CCI column
    """
    start = header_index(rows)
    if start is None:
        raise ParseError("No CCI column found in eMASS export")
    positions = column_map(rows[start])

    def get(row: List[str], name: str) -> str:
        i = positions.get(name)
        return row[i].strip() if i is not None and i < len(row) else ""

    ccis: List[CCI] = []
    for row in rows[start + 1 :]:
        raw = get(row, "CCI")
        if not raw:
            continue
        try:
            number = San.cci(raw)
        except ValidationError:
            continue
        cci = CCI(cci=number)
        for name, attr in IMPORT_COLUMNS.items():
            setattr(cci, attr, get(row, name))
        ccis.append(cci)
    return ccis


class EMASSImportWorker(Worker):
    """Store the latest eMASS test results on their CCIs."""

    name = "emass-import"

    def __init__(self, path: Union[str, Path], **kwargs) -> None:
        super().__init__(**kwargs)
        self.path = path

    def process(self, db: DbManager) -> None:
        path = San.path(self.path, exist=True, file=True)
        self.status(f"Reading {path.name}…")
        ccis = parse_tr_export(xlsx.read_rows(path, SHEET))
        self.initialize(len(ccis), 0)

        imported = 0
        missing: List[str] = []
        with db.delayed():
            for cci in ccis:
                self.check_shutdown()
                self.status(f"Importing {print_cci(cci)}…")
                if db.import_cci(cci):
                    imported += 1
                else:
                    missing.append(print_cci(cci))
                self.progress()

        if missing:
            self.warning(f"{len(missing)} CCI(s) from the export are not in the database: {', '.join(missing[:10])}")
        self.status("Done!")
        self.result.update({"ok": True, "imported": imported, "missing": missing})
