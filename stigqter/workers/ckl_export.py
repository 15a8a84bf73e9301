"""
Checklist export worker.

Writes one STIG Viewer 2.x ``.ckl`` per asset and mapped STIG. Files are
named ``<host>_<benchmark>_V<version>R<release>.ckl`` and written atomically.
"""

from __future__ import annotations

import re
import uuid
import xml.etree.ElementTree as ET
from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from stigqter.core.constants import MAX_COMMENT_LENGTH, MAX_FINDING_LENGTH, Severity
from stigqter.db.manager import DbManager
from stigqter.db.models import STIG, Asset, CKLCheck, STIGCheck, print_asset, print_cci, print_stig
from stigqter.exceptions import FileError, ValidationError
from stigqter.io.file_ops import FO
from stigqter.validation.validator import Val
from stigqter.xml.sanitizer import San
from stigqter.xml.schema import Sch
from stigqter.xml.utils import XmlUtils
from stigqter.workers.base import Worker

_RELEASE = re.compile(r"Release:\s*([\w.]+)", re.I)


def ckl_file_name(asset: Asset, stig: STIG) -> str:
    match = _RELEASE.search(stig.release or "")
    release = match.group(1) if match else San.filename(stig.release, "")
    benchmark = San.filename(stig.benchmark_id or stig.title, "STIG")
    return f"{San.filename(asset.host_name)}_{benchmark}_V{stig.version}R{release}.ckl"


def _sub(parent, tag: str, text: str = "") -> ET.Element:
    node = ET.SubElement(parent, tag)
    if text:
        node.text = San.xml(text)
    return node


def _build_asset(parent, asset: Asset) -> None:
    node = ET.SubElement(parent, "ASSET")
    values = {
        "ROLE": Sch.DEFS["ROLE"],
        "ASSET_TYPE": asset.asset_type or Sch.DEFS["ASSET_TYPE"],
        "MARKING": Sch.DEFS["MARKING"],
        "HOST_NAME": asset.host_name,
        "HOST_IP": asset.host_ip,
        "HOST_MAC": asset.host_mac,
        "HOST_FQDN": asset.host_fqdn,
        "TARGET_COMMENT": "",
        "TECH_AREA": asset.tech_area,
        "TARGET_KEY": asset.target_key,
        "WEB_OR_DATABASE": "true" if asset.web_or_database else "false",
        "WEB_DB_SITE": asset.web_db_site,
        "WEB_DB_INSTANCE": asset.web_db_instance,
    }
    for field in Sch.ASSET:
        _sub(node, field, values.get(field, ""))


def _build_stig_info(parent, stig: STIG) -> None:
    stig_info = ET.SubElement(parent, "STIG_INFO")
    values = {
        "version": str(stig.version),
        "classification": Sch.DEFS["classification"],
        "customname": "",
        "stigid": stig.benchmark_id,
        "description": stig.description,
        "filename": stig.file_name,
        "releaseinfo": stig.release,
        "title": stig.title,
        "uuid": str(uuid.uuid4()),
        "notice": Sch.DEFS["notice"],
        "source": Sch.DEFS["source"],
    }
    for field in Sch.STIG:
        si_data = ET.SubElement(stig_info, Sch.SI_DATA)
        _sub(si_data, Sch.SID_NAME, field)
        _sub(si_data, Sch.SID_DATA, values.get(field, ""))


def _build_vuln(stig: STIG, check: STIGCheck, ckl: CKLCheck, cci_ref: str) -> ET.Element:
    vuln = ET.Element("VULN")
    severity = check.severity if check.severity is not Severity.NONE else Severity.MEDIUM
    stig_data = OrderedDict(
        [
            ("Vuln_Num", check.vuln_num),
            ("Severity", severity.ckl),
            ("Group_Title", check.group_title),
            ("Rule_ID", check.rule),
            ("Rule_Ver", check.rule_version),
            ("Rule_Title", check.title),
            ("Vuln_Discuss", check.vuln_discussion),
            ("IA_Controls", check.ia_controls),
            ("Check_Content", check.check),
            ("Fix_Text", check.fix),
            ("False_Positives", check.false_positives),
            ("False_Negatives", check.false_negatives),
            ("Documentable", "true" if check.documentable else "false"),
            ("Mitigations", check.mitigations),
            ("Potential_Impact", check.potential_impact),
            ("Third_Party_Tools", check.third_party_tools),
            ("Mitigation_Control", check.mitigation_control),
            ("Responsibility", check.responsibility),
            ("Security_Override_Guidance", check.severity_override_guidance),
            ("Check_Content_Ref", check.check_content_ref or Sch.DEFS["Check_Content_Ref"]),
            ("Weight", str(check.weight)),
            ("Class", Sch.DEFS["Class"]),
            ("STIGRef", f"{stig.title} :: Version {stig.version}, {stig.release}"),
            ("TargetKey", check.target_key),
            ("STIG_UUID", str(uuid.uuid4())),
            ("CCI_REF", cci_ref),
        ]
    )
    for attribute in Sch.VULN:
        sd = ET.SubElement(vuln, Sch.STIG_DATA)
        _sub(sd, Sch.VULN_ATTRIBUTE, attribute)
        _sub(sd, Sch.ATTRIBUTE_DATA, stig_data.get(attribute, ""))

    _sub(vuln, "STATUS", ckl.status.ckl)
    _sub(vuln, "FINDING_DETAILS", San.xml(ckl.finding_details, MAX_FINDING_LENGTH))
    _sub(vuln, "COMMENTS", San.xml(ckl.comments, MAX_COMMENT_LENGTH))
    _sub(vuln, "SEVERITY_OVERRIDE", ckl.severity_override.ckl)
    _sub(vuln, "SEVERITY_JUSTIFICATION", ckl.severity_justification)
    return vuln


def build_checklist(db: DbManager, asset: Asset, stig: STIG) -> ET.Element:
    """CHECKLIST element for one asset and one STIG."""
    checklist = ET.Element(Sch.ROOT)
    _build_asset(checklist, asset)
    stigs = ET.SubElement(checklist, "STIGS")
    istig = ET.SubElement(stigs, "iSTIG")
    _build_stig_info(istig, stig)

    results: Dict[int, CKLCheck] = {c.stig_check_id: c for c in db.get_ckl_checks(asset, stig)}
    cci_cache: Dict[int, str] = {}
    for check in db.get_stig_checks(stig):
        ckl = results.get(check.id) or CKLCheck(asset_id=asset.id, stig_check_id=check.id)
        cci_ref = ""
        if check.cci_id is not None:
            if check.cci_id not in cci_cache:
                cci = db.get_cci(check.cci_id)
                cci_cache[check.cci_id] = print_cci(cci) if cci else ""
            cci_ref = cci_cache[check.cci_id]
        istig.append(_build_vuln(stig, check, ckl, cci_ref))

    XmlUtils.indent_xml(checklist)
    return checklist


def write_ckl(root: ET.Element, out: Union[str, Path]) -> Path:
    try:
        with FO.atomic(out, mode="wb", bak=False) as handle:
            handle.write(b'<?xml version="1.0" encoding="UTF-8"?>\n')
            handle.write(f"<!--{Sch.COMMENT}-->\n".encode("utf-8"))
            handle.write(ET.tostring(root, encoding="unicode", method="xml").encode("utf-8"))
    except FileError:
        raise
    except Exception as exc:
        raise FileError(f"Failed to write CKL: {exc}", {"file": str(out)}) from exc
    return Path(out)


class CKLExportWorker(Worker):
    """Export checklists for every (or the selected) asset."""

    name = "ckl-export"

    def __init__(self, directory: Union[str, Path], asset_ids: Optional[Sequence[int]] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.directory = directory
        self.asset_ids = [int(i) for i in asset_ids] if asset_ids else None

    def process(self, db: DbManager) -> None:
        directory = San.path(self.directory, dir=True)
        directory.mkdir(parents=True, exist_ok=True)

        if self.asset_ids is None:
            assets = db.get_assets()
        else:
            assets = []
            for asset_id in self.asset_ids:
                asset = db.get_asset(asset_id)
                if asset is None:
                    self.warning(f"Asset {asset_id} does not exist")
                else:
                    assets.append(asset)

        pairs = [(asset, stig) for asset in assets for stig in db.get_stigs(asset)]
        self.initialize(len(pairs), 0)
        written: List[str] = []
        failed: List[str] = []

        for asset, stig in pairs:
            self.check_shutdown()
            out = directory / ckl_file_name(asset, stig)
            self.status(f"Writing {print_asset(asset)} {print_stig(stig)}…")
            try:
                checklist = build_checklist(db, asset, stig)
                Val.validate_ckl(checklist, strict=True)
                write_ckl(checklist, out)
                written.append(str(out))
            except (ValidationError, FileError) as exc:
                self.warning(f"Unable to export {out.name}: {exc}")
                failed.append(str(out))
            self.progress()

        self.status("Done!")
        self.result.update({"ok": not failed, "written": written, "failed": failed})
