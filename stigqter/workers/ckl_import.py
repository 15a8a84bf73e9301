"""
Checklist import worker.

Reads STIG Viewer ``.ckl`` files, creates the asset they describe when it is
not stored yet, maps each known STIG to it and copies the per-rule results.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Tuple, Union

from stigqter.core.constants import MAX_COMMENT_LENGTH, MAX_FINDING_LENGTH, Severity, Status
from stigqter.db.manager import DbManager
from stigqter.db.models import Asset, print_asset, print_stig
from stigqter.exceptions import FileError, ParseError, STIGError, ValidationError
from stigqter.io.file_ops import FO
from stigqter.validation.validator import Val
from stigqter.xml.sanitizer import San
from stigqter.xml.utils import XmlUtils
from stigqter.workers.base import Worker


def asset_from_ckl(root, fallback: str = "") -> Asset:
    """Asset built from the ASSET element.

    A blank HOST_NAME takes ``fallback`` (the checklist's file stem) reduced
    to host name characters. Raises ValidationError on a bad host name.
    """
    node = root.find("ASSET")
    if node is None:
        raise ValidationError("Missing required ASSET element")

    def text(tag: str) -> str:
        return San.text(node.findtext(tag) or "")

    host_name = text("HOST_NAME")
    if not host_name and fallback:
        host_name = San.filename(fallback, default="")

    web = text("WEB_OR_DATABASE").lower() == "true"
    try:
        host_mac = San.mac(text("HOST_MAC"))
    except ValidationError:
        host_mac = text("HOST_MAC")
    return Asset(
        asset_type=text("ASSET_TYPE") or "Computing",
        host_name=San.host(host_name),
        host_ip=text("HOST_IP"),
        host_mac=host_mac,
        host_fqdn=text("HOST_FQDN"),
        tech_area=text("TECH_AREA"),
        target_key=text("TARGET_KEY"),
        web_or_database=web,
        web_db_site=text("WEB_DB_SITE") if web else "",
        web_db_instance=text("WEB_DB_INSTANCE") if web else "",
    )


def stig_key(istig) -> Tuple[str, int, str]:
    """(title, version, release) of an iSTIG from its STIG_INFO block."""
    info = XmlUtils.get_si_data(istig)
    try:
        version = int(info.get("version", "0").strip() or 0)
    except ValueError:
        version = 0
    return info.get("title", "").strip(), version, info.get("releaseinfo", "").strip()


class CKLImportWorker(Worker):
    """Import checklist results into the database."""

    name = "ckl-import"

    def __init__(self, paths: Sequence[Union[str, Path]], **kwargs) -> None:
        super().__init__(**kwargs)
        self.paths = list(paths)

    def process(self, db: DbManager) -> None:
        self.initialize(len(self.paths), 0)
        imported: List[str] = []
        failed: List[str] = []
        skipped: List[str] = []
        updated = 0

        for raw in self.paths:
            self.check_shutdown()
            try:
                path = San.path(raw, exist=True, file=True)
                self.status(f"Reading {path.name}…")
                root = FO.parse_bytes(path.read_bytes(), path.name)
                report = Val.validate_ckl(root, strict=False)
                if not report["valid"]:
                    raise ValidationError(f"{path.name} is not a valid checklist", {"errors": len(report["errors"])})
                asset = self._asset(db, root, path.stem)
            except (STIGError, OSError) as exc:
                self.warning(f"Unable to import {raw}: {exc}")
                failed.append(str(raw))
                self.progress()
                continue

            for istig in root.iter("iSTIG"):
                self.check_shutdown()
                title, version, release = stig_key(istig)
                stig = db.get_stig(title, version, release)
                if stig is None:
                    self.warning(
                        f"{title} Version: {version} {release} is not in the database; "
                        f"import the STIG before the checklist for {print_asset(asset)}"
                    )
                    skipped.append(title)
                    continue
                if stig.id not in {s.id for s in db.get_stigs(asset)}:
                    db.add_stig_to_asset(stig, asset)
                self.status(f"Updating {print_asset(asset)} {print_stig(stig)}…")
                updated += self._update_checks(db, asset, stig, istig)

            imported.append(path.name)
            self.progress()

        self.status("Done!")
        self.result.update(
            {"ok": not failed, "imported": imported, "failed": failed, "skipped": skipped, "updated": updated}
        )

    def _asset(self, db: DbManager, root, stem: str) -> Asset:
        asset = asset_from_ckl(root, stem)
        if not (root.findtext("ASSET/HOST_NAME") or "").strip():
            self.warning(f"{stem} has no HOST_NAME; importing it as {print_asset(asset)}")
        stored = db.get_asset(asset.host_name)
        if stored is not None:
            return stored
        self.status(f"Adding asset {print_asset(asset)}…")
        if not db.add_asset(asset):
            raise FileError(f"Unable to add asset {print_asset(asset)}")
        return asset

    def _update_checks(self, db: DbManager, asset: Asset, stig, istig) -> int:
        count = 0
        with db.delayed():
            for vuln in istig.iter("VULN"):
                data = XmlUtils.get_stig_data(vuln)
                rule = (data.get("Rule_ID") or [""])[0].strip()
                stig_check = db.get_stig_check(stig, rule)
                if stig_check is None:
                    self.warning(f"Rule {rule} is not part of {print_stig(stig)}")
                    continue
                ckl = db.get_ckl_check(asset, stig_check)
                if ckl is None:
                    continue
                try:
                    ckl.status = San.status(vuln.findtext("STATUS") or "Not_Reviewed")
                except ValidationError as exc:
                    self.warning(f"{rule}: {exc}")
                    ckl.status = Status.NOT_REVIEWED
                ckl.finding_details = San.xml(vuln.findtext("FINDING_DETAILS") or "", MAX_FINDING_LENGTH)
                ckl.comments = San.xml(vuln.findtext("COMMENTS") or "", MAX_COMMENT_LENGTH)
                try:
                    ckl.severity_override = San.sev(vuln.findtext("SEVERITY_OVERRIDE") or "", allow_none=True)
                except ValidationError:
                    ckl.severity_override = Severity.NONE
                ckl.severity_justification = San.xml(vuln.findtext("SEVERITY_JUSTIFICATION") or "")
                if db.update_ckl_check(ckl):
                    count += 1
        return count
