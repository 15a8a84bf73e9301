"""
Entity dataclasses for the STIGQter database.

Every entity carries ``id = -1`` until it has been stored. Rows come back
from SQLite as ``sqlite3.Row`` and are turned into these classes by the
``from_row`` constructors; column names follow the on-disk schema
(``hostName``, ``STIGId``...), attribute names are snake_case.

Thread-safe: No (plain mutable records; each worker owns its copies)
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Optional

from stigqter.core.constants import Severity, Status


@dataclass
class Family:
    """NIST 800-53 control family (``AC`` - Access Control)."""

    id: int = -1
    acronym: str = ""
    description: str = ""

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Family":
        return cls(id=row["id"], acronym=row["Acronym"] or "", description=row["Description"] or "")


@dataclass
class Control:
    """NIST 800-53 control or control enhancement."""

    id: int = -1
    family_id: int = -1
    number: int = 0
    enhancement: Optional[int] = None
    title: str = ""
    description: str = ""

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Control":
        return cls(
            id=row["id"],
            family_id=row["FamilyId"],
            number=row["number"],
            enhancement=row["enhancement"],
            title=row["title"] or "",
            description=row["description"] or "",
        )


@dataclass
class CCI:
    """Control Correlation Identifier plus its last eMASS import results."""

    id: int = -1
    control_id: Optional[int] = None
    cci: int = 0
    definition: str = ""
    is_import: bool = False
    import_compliance: str = ""
    import_date_tested: str = ""
    import_tested_by: str = ""
    import_test_results: str = ""

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "CCI":
        return cls(
            id=row["id"],
            control_id=row["ControlId"],
            cci=row["cci"],
            definition=row["definition"] or "",
            is_import=bool(row["isImport"]),
            import_compliance=row["importCompliance"] or "",
            import_date_tested=row["importDateTested"] or "",
            import_tested_by=row["importTestedBy"] or "",
            import_test_results=row["importTestResults"] or "",
        )


@dataclass
class STIG:
    """A STIG benchmark, identified by (title, version, release)."""

    id: int = -1
    title: str = ""
    description: str = ""
    release: str = ""
    version: int = 0
    benchmark_id: str = ""
    file_name: str = ""

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "STIG":
        return cls(
            id=row["id"],
            title=row["title"] or "",
            description=row["description"] or "",
            release=row["release"] or "",
            version=row["version"] or 0,
            benchmark_id=row["benchmarkId"] or "",
            file_name=row["fileName"] or "",
        )


@dataclass
class STIGCheck:
    """One rule of a STIG benchmark."""

    id: int = -1
    stig_id: int = -1
    cci_id: Optional[int] = None
    rule: str = ""
    vuln_num: str = ""
    group_title: str = ""
    rule_version: str = ""
    severity: Severity = Severity.NONE
    weight: float = 10.0
    title: str = ""
    vuln_discussion: str = ""
    false_positives: str = ""
    false_negatives: str = ""
    fix: str = ""
    check: str = ""
    documentable: bool = False
    mitigations: str = ""
    severity_override_guidance: str = ""
    check_content_ref: str = ""
    potential_impact: str = ""
    third_party_tools: str = ""
    mitigation_control: str = ""
    responsibility: str = ""
    ia_controls: str = ""
    target_key: str = ""

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "STIGCheck":
        return cls(
            id=row["id"],
            stig_id=row["STIGId"],
            cci_id=row["CCIId"],
            rule=row["rule"] or "",
            vuln_num=row["vulnNum"] or "",
            group_title=row["groupTitle"] or "",
            rule_version=row["ruleVersion"] or "",
            severity=Severity(row["severity"] or 0),
            weight=row["weight"] if row["weight"] is not None else 10.0,
            title=row["title"] or "",
            vuln_discussion=row["vulnDiscussion"] or "",
            false_positives=row["falsePositives"] or "",
            false_negatives=row["falseNegatives"] or "",
            fix=row["fix"] or "",
            check=row["check"] or "",
            documentable=bool(row["documentable"]),
            mitigations=row["mitigations"] or "",
            severity_override_guidance=row["severityOverrideGuidance"] or "",
            check_content_ref=row["checkContentRef"] or "",
            potential_impact=row["potentialImpact"] or "",
            third_party_tools=row["thirdPartyTools"] or "",
            mitigation_control=row["mitigationControl"] or "",
            responsibility=row["responsibility"] or "",
            ia_controls=row["IAControls"] or "",
            target_key=row["targetKey"] or "",
        )


@dataclass
class Asset:
    """A computing asset checklists are kept for; host names are unique."""

    id: int = -1
    asset_type: str = "Computing"
    host_name: str = ""
    host_ip: str = ""
    host_mac: str = ""
    host_fqdn: str = ""
    tech_area: str = ""
    target_key: str = ""
    web_or_database: bool = False
    web_db_site: str = ""
    web_db_instance: str = ""

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Asset":
        return cls(
            id=row["id"],
            asset_type=row["assetType"] or "",
            host_name=row["hostName"] or "",
            host_ip=row["hostIP"] or "",
            host_mac=row["hostMAC"] or "",
            host_fqdn=row["hostFQDN"] or "",
            tech_area=row["techArea"] or "",
            target_key=row["targetKey"] or "",
            web_or_database=bool(row["webOrDatabase"]),
            web_db_site=row["webDBSite"] or "",
            web_db_instance=row["webDBInstance"] or "",
        )


@dataclass
class CKLCheck:
    """Per-asset result of one STIGCheck."""

    id: int = -1
    asset_id: int = -1
    stig_check_id: int = -1
    status: Status = Status.NOT_REVIEWED
    finding_details: str = ""
    comments: str = ""
    severity_override: Severity = Severity.NONE
    severity_justification: str = ""

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "CKLCheck":
        return cls(
            id=row["id"],
            asset_id=row["AssetId"],
            stig_check_id=row["STIGCheckId"],
            status=Status(row["status"] or 0),
            finding_details=row["findingDetails"] or "",
            comments=row["comments"] or "",
            severity_override=Severity(row["severityOverride"] or 0),
            severity_justification=row["severityJustification"] or "",
        )

    def effective_severity(self, stig_check: STIGCheck) -> Severity:
        """Override severity when one is set, otherwise the rule's."""
        if self.severity_override is not Severity.NONE:
            return self.severity_override
        return stig_check.severity


# ──────────────────────────────────────────────────────────────────────────────
# DISPLAY HELPERS
# ──────────────────────────────────────────────────────────────────────────────

def print_control(control: Control, family: Optional[Family]) -> str:
    """``AC-2 (3)`` or ``AC-2``."""
    acronym = family.acronym if family else "??"
    text = f"{acronym}-{control.number}"
    if control.enhancement is not None:
        text += f" ({control.enhancement})"
    return text


def print_cci(cci: CCI) -> str:
    return f"CCI-{cci.cci:06d}"


def print_stig(stig: STIG) -> str:
    return f"{stig.title} Version: {stig.version} {stig.release}"


def print_stig_check(check: STIGCheck) -> str:
    return f"{check.rule} {check.title}"


def print_asset(asset: Asset) -> str:
    return asset.host_name
