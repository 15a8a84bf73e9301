"""Open findings report (xlsx)."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Union

from openpyxl import Workbook

from stigqter.core.constants import Status
from stigqter.db.manager import DbManager
from stigqter.db.models import print_asset, print_cci, print_control, print_stig
from stigqter.io import xlsx
from stigqter.xml.sanitizer import San
from stigqter.workers.base import Worker

SHEET = "Findings"

HEADERS = [
    "Asset",
    "STIG",
    "Rule",
    "Vuln Number",
    "CCI",
    "Control",
    "Severity",
    "Title",
    "Finding Details",
]


class FindingsReportWorker(Worker):
    """One row per Open CKLCheck, worst severity first."""

    name = "findings-report"

    def __init__(self, out: Union[str, Path], **kwargs) -> None:
        super().__init__(**kwargs)
        self.out = out

    def process(self, db: DbManager) -> None:
        out = San.path(self.out, mkpar=True)
        self.status("Collecting open findings…")
        assets = {a.id: a for a in db.get_assets()}
        stigs = {s.id: s for s in db.get_stigs()}
        stig_checks = {c.id: c for c in db.get_stig_checks()}
        findings = [c for c in db.get_ckl_checks() if c.status == Status.OPEN]
        self.initialize(len(findings) + 1, 0)

        labels: Dict[int, List[str]] = {}
        rows = []
        for ckl in findings:
            self.check_shutdown()
            check = stig_checks.get(ckl.stig_check_id)
            asset = assets.get(ckl.asset_id)
            if check is None or asset is None:
                self.progress()
                continue
            if check.cci_id is not None and check.cci_id not in labels:
                labels[check.cci_id] = self._cci_labels(db, check.cci_id)
            cci_label, control_label = labels.get(check.cci_id, ["", ""])
            severity = ckl.effective_severity(check)
            stig = stigs.get(check.stig_id)
            rows.append(
                (
                    -int(severity),
                    [
                        print_asset(asset),
                        print_stig(stig) if stig else "",
                        check.rule,
                        check.vuln_num,
                        cci_label,
                        control_label,
                        severity.ckl,
                        check.title,
                        San.xml(ckl.finding_details),
                    ],
                )
            )
            self.progress()

        rows.sort(key=lambda r: (r[0], r[1][0].lower(), r[1][2]))
        self.status("Writing report…")
        wb = Workbook()
        ws = wb.active
        ws.title = SHEET
        xlsx.append_row(ws, HEADERS)
        for _, row in rows:
            xlsx.append_row(ws, row)
        xlsx.save(wb, out)
        self.progress()

        self.status("Done!")
        self.result.update({"ok": True, "file": str(out), "findings": len(rows)})

    @staticmethod
    def _cci_labels(db: DbManager, cci_id: int) -> List[str]:
        cci = db.get_cci(cci_id)
        if cci is None:
            return ["", ""]
        control = db.get_control(cci.control_id) if cci.control_id is not None else None
        control_label = print_control(control, db.get_family(control.family_id)) if control else ""
        return [print_cci(cci), control_label]
