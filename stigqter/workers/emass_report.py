"""
eMASS Test Result Import report.

Rolls every checklist result up to its CCI: one Open check makes the CCI
Non-Compliant, otherwise a NotAFinding check makes it Compliant. The rows are
written to the "Test Result Import" sheet of an xlsx workbook laid out like
the eMASS template: five banner rows, the column headers on row 6 and data
from row 7.
"""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from stigqter.core.constants import VERSION, Status
from stigqter.db.manager import DbManager
from stigqter.db.models import CCI, Asset, CKLCheck, STIGCheck, print_asset, print_cci, print_control, print_stig_check
from stigqter.io import xlsx
from stigqter.io.xlsx import emass_date
from stigqter.xml.sanitizer import San
from stigqter.workers.base import Worker

HEADERS = [
    "Control Number",
    "Control Information",
    "AP Acronym",
    "CCI",
    "CCI Definition",
    "Implementation Guidance",
    "Assessment Procedures",
    "Compliance Status",
    "Date Tested",
    "Tested By",
    "Test Results",
    # Latest Test Result group repeats the names
    "Compliance Status",
    "Date Tested",
    "Tested By",
    "Test Results",
]

SHEET = "Test Result Import"

# (first column, last column, text) of the row 5 group banners
GROUPS = (
    (1, 7, "Control / AP Information"),
    (8, 11, "Enter Test Results Here"),
    (12, 15, "Latest Test Result"),
)

# Spreadsheet cell limit of the TR Import template
CELL_LIMIT = 32_767

Entry = Tuple[Asset, STIGCheck, CKLCheck]


def tested_by() -> str:
    """Current user from $USER, then $USERNAME, else UNKNOWN."""
    for var in ("USER", "USERNAME"):
        value = os.environ.get(var, "").strip()
        if value:
            return value
    return "UNKNOWN"


def date_tested(today: Optional[date] = None) -> str:
    """``dd-Mon-yyyy`` as eMASS expects it."""
    return emass_date(today or date.today())


def cell(value: str) -> str:
    value = San.xml(value)
    return value if len(value) <= CELL_LIMIT else value[: CELL_LIMIT - 3] + "..."


def open_line(asset: Asset, check: STIGCheck, ckl: CKLCheck) -> str:
    line = f"{print_asset(asset)}: {print_stig_check(check)} - {ckl.effective_severity(check).ckl}"
    if ckl.finding_details:
        line += f" - {ckl.finding_details}"
    return line


def compliant_line(asset: Asset, check: STIGCheck, ckl: CKLCheck) -> str:
    return f"{print_asset(asset)}: {print_stig_check(check)}"


def rollup(db: DbManager) -> Tuple[Dict[int, List[Entry]], Dict[int, List[Entry]]]:
    """Map CCI ids to the Open (failed) and NotAFinding (passed) checks."""
    assets = {a.id: a for a in db.get_assets()}
    stig_checks = {c.id: c for c in db.get_stig_checks()}
    failed: Dict[int, List[Entry]] = {}
    passed: Dict[int, List[Entry]] = {}

    for ckl in db.get_ckl_checks():
        check = stig_checks.get(ckl.stig_check_id)
        asset = assets.get(ckl.asset_id)
        if check is None or asset is None or check.cci_id is None:
            continue
        entry = (asset, check, ckl)
        if ckl.status == Status.OPEN:
            passed.pop(check.cci_id, None)
            failed.setdefault(check.cci_id, []).append(entry)
        elif ckl.status == Status.NOT_A_FINDING and check.cci_id not in failed:
            passed.setdefault(check.cci_id, []).append(entry)
    return failed, passed


def write_sheet(ws: Worksheet, rows: List[List[str]], today: Optional[date] = None) -> None:
    """Banner rows 1-5, headers on row 6, then ``rows``."""
    width = len(HEADERS)
    ws.title = SHEET
    xlsx.append_row(ws, ["UNCLASSIFIED"])
    xlsx.append_row(ws, [f"Exported on {date_tested(today)}"])
    xlsx.append_row(ws, ["Test Result Import Template"] + [""] * (width - 2) + [f"Provided by STIGQter {VERSION}"])
    xlsx.append_row(ws, ["(System Type: UNKNOWN, DoD Component: Public)"])
    for row in (1, 2, 4):
        xlsx.merge(ws, row, 1, width)
    xlsx.merge(ws, 3, 1, width - 1)

    banners = [""] * width
    for first, _, label in GROUPS:
        banners[first - 1] = label
    xlsx.append_row(ws, banners)
    for first, last, _ in GROUPS:
        xlsx.merge(ws, 5, first, last)

    xlsx.append_row(ws, HEADERS)
    for row in rows:
        xlsx.append_row(ws, row)


class EMASSReportWorker(Worker):
    """Write the eMASS TR Import rows to an xlsx workbook."""

    name = "emass-report"

    def __init__(self, out: Union[str, Path], **kwargs) -> None:
        super().__init__(**kwargs)
        self.out = out

    def _control_cells(self, db: DbManager, cci: CCI) -> List[str]:
        control = db.get_control(cci.control_id) if cci.control_id is not None else None
        if control is None:
            return ["", ""]
        return [print_control(control, db.get_family(control.family_id)), cell(control.description)]

    def _row(self, db: DbManager, cci: CCI, compliance: str, tested: str, results: str) -> List[str]:
        row = self._control_cells(db, cci)
        row += ["", f"{cci.cci:06d}", cell(cci.definition), "", ""]
        if compliance:
            row += [compliance, date_tested(), tested, cell(results)]
        else:
            row += ["", "", "", ""]
        if cci.is_import:
            row += [
                cci.import_compliance,
                cci.import_date_tested,
                cci.import_tested_by,
                cell(cci.import_test_results),
            ]
        else:
            row += ["", "", "", ""]
        return row

    def process(self, db: DbManager) -> None:
        out = San.path(self.out, mkpar=True)
        self.status("Building CCI results…")
        failed, passed = rollup(db)
        ccis = {c.id: c for c in db.get_ccis()}
        self.initialize(len(failed) + len(passed) + 1, 0)

        user = tested_by()
        rows: List[List[str]] = []
        unimported = False

        for cci_ids, compliance, heading, line in (
            (failed, "Non-Compliant", "The following checks are open:", open_line),
            (passed, "Compliant", "The following checks were compliant:", compliant_line),
        ):
            for cci in sorted((ccis[i] for i in cci_ids if i in ccis), key=lambda c: c.cci):
                self.check_shutdown()
                self.status(f"Adding {print_cci(cci)}…")
                entries = sorted(cci_ids[cci.id], key=lambda e: (e[0].host_name.lower(), e[1].rule))
                results = "\n".join([heading] + [line(*e) for e in entries])
                rows.append(self._row(db, cci, compliance, user, results))
                if not cci.is_import:
                    unimported = True
                self.progress()

        for cci in ccis.values():
            if cci.is_import and cci.id not in failed and cci.id not in passed:
                rows.append(self._row(db, cci, "", "", ""))

        if unimported and db.is_emass_import():
            self.warning(
                "One or more CCIs were not part of the eMASS TR Import. Check the report for test results "
                "without data in the Latest Test Result columns."
            )

        self.status("Writing report…")
        wb = Workbook()
        write_sheet(wb.active, rows)
        xlsx.save(wb, out)
        self.progress()

        self.status("Done!")
        self.result.update(
            {
                "ok": True,
                "file": str(out),
                "non_compliant": len(failed),
                "compliant": len(passed),
                "rows": len(rows),
            }
        )
