"""
STIG import worker.

Reads DISA STIG releases (zips, possibly holding further zips, or bare XCCDF
files) and stores every benchmark with its rules. Each Rule description
carries escaped pseudo-XML (``<VulnDiscussion>...``) which is unpacked into
the individual STIGCheck fields.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from stigqter.core.constants import Severity
from stigqter.db.manager import DbManager
from stigqter.db.models import STIG, STIGCheck, print_stig
from stigqter.exceptions import FileError, ParseError, STIGError, ValidationError
from stigqter.io.file_ops import ET, FO, XMLParseError
from stigqter.validation.validator import Val
from stigqter.xml.sanitizer import San
from stigqter.xml.schema import Sch
from stigqter.xml.utils import XmlUtils
from stigqter.workers.base import Worker

_DESCRIPTION_TAG = re.compile(r"<(\w+)>(.*?)</\1>", re.S)


def parse_rule_description(text: str) -> Dict[str, str]:
    """Unpack the pseudo-XML in a Rule description into STIGCheck fields."""
    fields: Dict[str, str] = {}
    if not text:
        return fields

    try:
        wrapper = ET.fromstring(f"<VulnDescription>{text}</VulnDescription>")
        pairs = [(Sch.strip_ns(child.tag), "".join(child.itertext())) for child in wrapper]
    except XMLParseError:
        # Free text with bare "<" or "&"; fall back to tag matching
        pairs = _DESCRIPTION_TAG.findall(text)

    for tag, value in pairs:
        field = Sch.RULE_DESCRIPTION.get(tag)
        if field and field not in fields:
            fields[field] = value.strip()
    return fields


def _rule_to_check(group, rule) -> Tuple[STIGCheck, Optional[int]]:
    check = STIGCheck(
        rule=(rule.get("id") or "").strip(),
        vuln_num=(group.get("id") or "").strip(),
        group_title=XmlUtils.child_text(group, Sch.XCCDF_TITLE),
        rule_version=XmlUtils.child_text(rule, Sch.XCCDF_VERSION),
        severity=Severity.from_string(rule.get("severity") or ""),
        title=XmlUtils.child_text(rule, Sch.XCCDF_TITLE),
    )
    try:
        check.weight = float(rule.get("weight") or 10.0)
    except ValueError:
        check.weight = 10.0

    description = XmlUtils.child(rule, Sch.XCCDF_DESCRIPTION)
    for field, value in parse_rule_description(description.text if description is not None else "").items():
        if field == "documentable":
            check.documentable = value.lower().startswith("t")
        else:
            setattr(check, field, value)

    cci_number: Optional[int] = None
    for ident in XmlUtils.children(rule, Sch.XCCDF_IDENT):
        value = (ident.text or "").strip()
        if value.upper().startswith("CCI"):
            try:
                cci_number = San.cci(value)
                break
            except ValidationError:
                continue

    check.fix = XmlUtils.extract_text_content(XmlUtils.child(rule, Sch.XCCDF_FIXTEXT))
    check_elem = XmlUtils.child(rule, Sch.XCCDF_CHECK)
    if check_elem is not None:
        ref = XmlUtils.child(check_elem, Sch.XCCDF_CHECK_CONTENT_REF)
        if ref is not None:
            check.check_content_ref = (ref.get("name") or "").strip()
        check.check = XmlUtils.extract_text_content(XmlUtils.child(check_elem, Sch.XCCDF_CHECK_CONTENT))
    return check, cci_number


def parse_stig(root, file_name: str = "") -> Tuple[STIG, List[Tuple[STIGCheck, Optional[int]]]]:
    """Parse an XCCDF Benchmark.

    Returns:
        The STIG and its checks, each paired with the CCI number of the rule
        (None when the rule has no CCI ident).

    Raises:
        ParseError: If the document is not an XCCDF Benchmark
    """
    if XmlUtils.local(root) != Sch.XCCDF_BENCHMARK:
        raise ParseError(f"Not an XCCDF benchmark: <{XmlUtils.local(root)}>", {"file": file_name})

    stig = STIG(
        title=XmlUtils.child_text(root, Sch.XCCDF_TITLE),
        description=XmlUtils.child_text(root, Sch.XCCDF_DESCRIPTION),
        benchmark_id=(root.get("id") or "").strip(),
        file_name=file_name,
    )
    for plain in XmlUtils.children(root, Sch.XCCDF_PLAIN_TEXT):
        if (plain.get("id") or "").strip() == Sch.XCCDF_RELEASE_INFO:
            stig.release = (plain.text or "").strip()
    try:
        stig.version = int(XmlUtils.child_text(root, Sch.XCCDF_VERSION) or 0)
    except ValueError:
        stig.version = 0

    checks: List[Tuple[STIGCheck, Optional[int]]] = []
    for group in XmlUtils.descendants(root, Sch.XCCDF_GROUP):
        for rule in XmlUtils.children(group, Sch.XCCDF_RULE):
            checks.append(_rule_to_check(group, rule))
    return stig, checks


class STIGAddWorker(Worker):
    """Import STIG benchmarks from zip or XCCDF files."""

    name = "stig-add"

    def __init__(self, paths: Sequence[Union[str, Path]], **kwargs) -> None:
        super().__init__(**kwargs)
        self.paths = list(paths)

    def _documents(self, path: Path) -> List[Tuple[str, bytes]]:
        if path.suffix.lower() == ".zip":
            return FO.xml_from_zip(path)
        return [(path.name, path.read_bytes())]

    def add_document(self, db: DbManager, name: str, data: bytes) -> Optional[bool]:
        """Store one XCCDF document; None when it is not a benchmark."""
        root = FO.parse_bytes(data, name)
        if XmlUtils.local(root) != Sch.XCCDF_BENCHMARK:
            return None
        report = Val.validate_xccdf(root)
        if not report["valid"]:
            raise ValidationError(report["errors"][0], {"file": name})
        for text in report["warnings"]:
            self.warning(f"{Path(name).name}: {text}")

        stig, parsed = parse_stig(root, Path(name).name)
        self.status(f"Adding {print_stig(stig)}…")

        checks: List[STIGCheck] = []
        for check, number in parsed:
            if number is not None:
                cci = db.get_cci_by_cci(number, stig)
                check.cci_id = cci.id if cci else None
            checks.append(check)
        return db.add_stig(stig, checks)

    def process(self, db: DbManager) -> None:
        self.initialize(len(self.paths), 0)
        added: List[str] = []
        failed: List[str] = []

        for raw in self.paths:
            self.check_shutdown()
            try:
                path = San.path(raw, exist=True, file=True)
                self.status(f"Extracting {path.name}…")
                documents = self._documents(path)
            except (STIGError, OSError) as exc:
                self.warning(f"Unable to read {raw}: {exc}")
                failed.append(str(raw))
                self.progress()
                continue

            found = False
            for name, data in documents:
                self.check_shutdown()
                try:
                    outcome = self.add_document(db, name, data)
                except (ParseError, ValidationError, FileError) as exc:
                    self.warning(f"Unable to parse {name}: {exc}")
                    failed.append(name)
                    continue
                if outcome is None:
                    continue
                found = True
                (added if outcome else failed).append(name)
            if not found:
                self.warning(f"No XCCDF benchmark found in {path.name}")
                failed.append(path.name)
            self.progress()

        self.status("Done!")
        self.result.update({"ok": not failed, "added": added, "failed": failed})
