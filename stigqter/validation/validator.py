"""
STIG Viewer 2.x compatibility validation.

Checklists are validated before import (the asset and STIG lookups depend on
HOST_NAME and the STIG_INFO title/version/releaseinfo) and after export.
Benchmarks are validated before their rules reach the database.
"""

from __future__ import annotations
from typing import Any, Dict, List, Union
from xml.etree.ElementTree import Element, ElementTree

from stigqter.core.constants import Severity, Status
from stigqter.core.logging import LOG
from stigqter.exceptions import ValidationError
from stigqter.xml.sanitizer import San
from stigqter.xml.schema import Sch
from stigqter.xml.utils import XmlUtils

Doc = Union[ElementTree, Element]

# STIG_DATA attributes a checklist VULN cannot do without
REQUIRED_VULN_DATA = frozenset(Sch.VULN[:7] + ("Check_Content", "Fix_Text"))

# STIG_INFO entries used to match an iSTIG against stored STIGs
MATCH_INFO = ("title", "version", "releaseinfo")

SUMMARY_LINES = 10


class _Report:
    """Collects errors and warnings; ``where`` prefixes the next findings."""

    def __init__(self) -> None:
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def error(self, msg: str, where: str = "") -> None:
        self.errors.append(f"{where}: {msg}" if where else msg)

    def warn(self, msg: str, where: str = "") -> None:
        self.warnings.append(f"{where}: {msg}" if where else msg)

    def as_dict(self, **counts: int) -> Dict[str, Any]:
        return {"valid": not self.errors, "errors": self.errors, "warnings": self.warnings, **counts}

    def summary(self, kind: str) -> str:
        text = "\n".join(self.errors[:SUMMARY_LINES])
        extra = len(self.errors) - SUMMARY_LINES
        if extra > 0:
            text += f"\n... and {extra} more errors"
        return f"{kind} validation failed with {len(self.errors)} error(s):\n{text}"


def _root(doc: Doc) -> Element:
    return doc.getroot() if hasattr(doc, "getroot") else doc


class Val:
    """
    Checklist and benchmark validation.

    Thread-safe: Yes (stateless)
    """

    @staticmethod
    def validate_ckl(doc: Doc, strict: bool = True) -> Dict[str, Any]:
        """
        Validate a STIG Viewer checklist.

        Errors: wrong root, no ASSET, no STIGS/iSTIG, a VULN with missing
        STIG_DATA, bad STATUS, severity or Vuln_Num. Warnings: no HOST_NAME or
        ASSET_TYPE, STIG_INFO without the entries used to match a stored STIG,
        repeated Rule_IDs, no VULNs at all.

        Returns:
            Report dict with ``valid``, ``errors``, ``warnings`` and
            ``vuln_count``

        Raises:
            ValidationError: If strict=True and validation fails
        """
        report = _Report()
        root = _root(doc)

        if root.tag != Sch.ROOT:
            report.error(f"Invalid root element: {root.tag}, expected {Sch.ROOT}")

        asset = root.find("ASSET")
        if asset is None:
            report.error("Missing required ASSET element")
        else:
            if not (asset.findtext("HOST_NAME") or "").strip():
                report.warn("Missing HOST_NAME in ASSET; the file name is used as the host name")
            if asset.find("ASSET_TYPE") is None:
                report.warn("Missing ASSET_TYPE element in ASSET")

        istigs: List[Element] = []
        stigs = root.find("STIGS")
        if stigs is None:
            report.error("Missing required STIGS element")
        else:
            istigs = stigs.findall("iSTIG")
            if not istigs:
                report.error("Missing required iSTIG element")

        vuln_count = 0
        for s, istig in enumerate(istigs):
            Val._check_istig(istig, f"iSTIG[{s}]", report)
            for vuln in istig.findall("VULN"):
                Val._check_vuln(vuln, f"VULN[{vuln_count}]", report)
                vuln_count += 1

        if vuln_count == 0:
            report.warn("No vulnerabilities found in checklist")

        LOG.d(f"Checklist validated: {vuln_count} VULNs, {len(report.errors)} errors, {len(report.warnings)} warnings")
        if strict and report.errors:
            raise ValidationError(report.summary("CKL"))
        return report.as_dict(vuln_count=vuln_count)

    @staticmethod
    def _check_istig(istig: Element, where: str, report: _Report) -> None:
        if istig.find("STIG_INFO") is None:
            report.warn("Missing STIG_INFO element", where)
        else:
            info = XmlUtils.get_si_data(istig)
            absent = [name for name in MATCH_INFO if not info.get(name)]
            if absent:
                report.warn(f"STIG_INFO has no {', '.join(absent)}; the STIG cannot be matched on import", where)

        seen = set()
        for vuln in istig.findall("VULN"):
            rule = (XmlUtils.get_stig_data(vuln).get("Rule_ID") or [""])[0].strip()
            if rule and rule in seen:
                report.warn(f"Rule {rule} appears more than once", where)
            seen.add(rule)

    @staticmethod
    def _check_vuln(vuln: Element, where: str, report: _Report) -> None:
        data = XmlUtils.get_stig_data(vuln)

        def first(name: str) -> str:
            return (data.get(name) or [""])[0].strip()

        missing = REQUIRED_VULN_DATA - set(data)
        if missing:
            report.error(f"Missing required attributes: {sorted(missing)}", where)

        status = vuln.findtext("STATUS")
        if status is None:
            report.error("Missing STATUS element", where)
        elif not Status.is_valid(status.strip()):
            report.error(f"Invalid status: '{status}' (valid: {', '.join(sorted(Status.all_values()))})", where)

        severity = first("Severity")
        if severity and not Severity.is_valid(severity):
            report.error(f"Invalid severity: '{severity}' (valid: {', '.join(sorted(Severity.all_values()))})", where)

        try:
            San.vuln(first("Vuln_Num"))
        except ValidationError:
            report.error(f"Missing or invalid Vuln_Num: '{first('Vuln_Num')}'", where)

        if not first("Rule_ID"):
            report.error("Missing Rule_ID", where)

    @staticmethod
    def validate_xccdf(doc: Doc) -> Dict[str, Any]:
        """
        Validate an XCCDF benchmark before import.

        A benchmark needs a title; a missing or non-numeric version, a missing
        release-info, or Rules without a CCI ident are reported as warnings.

        Returns:
            Report dict with ``valid``, ``errors``, ``warnings``,
            ``rule_count`` and ``group_count``
        """
        report = _Report()
        root = _root(doc)

        if XmlUtils.local(root) != Sch.XCCDF_BENCHMARK:
            report.error(f"Invalid root element: {root.tag}, expected Benchmark (with or without namespace)")
        elif not XmlUtils.child_text(root, Sch.XCCDF_TITLE):
            report.error("Benchmark has no title")
        else:
            if not XmlUtils.child_text(root, Sch.XCCDF_VERSION).isdigit():
                report.warn("Benchmark version is missing or not a number; stored as 0")
            release = [p for p in XmlUtils.children(root, Sch.XCCDF_PLAIN_TEXT) if p.get("id") == Sch.XCCDF_RELEASE_INFO]
            if not release:
                report.warn("Benchmark has no release-info")

        group_count = 0
        rule_count = 0
        no_cci = 0
        for group in XmlUtils.descendants(root, Sch.XCCDF_GROUP):
            group_count += 1
            for rule in XmlUtils.children(group, Sch.XCCDF_RULE):
                rule_count += 1
                idents = (i.text or "" for i in XmlUtils.children(rule, Sch.XCCDF_IDENT))
                if not any(text.strip().upper().startswith("CCI") for text in idents):
                    no_cci += 1

        if not group_count:
            report.warn("No Group elements found in benchmark")
        if not rule_count:
            report.warn("No Rule elements found in benchmark")
        if no_cci:
            report.warn(f"{no_cci} rule(s) have no CCI ident and stay unmapped until --map-unmapped")

        LOG.d(f"Benchmark validated: {group_count} groups, {rule_count} rules")
        return report.as_dict(rule_count=rule_count, group_count=group_count)
