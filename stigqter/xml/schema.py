"""
STIGQter XML Schema Definitions.

Element names and namespace helpers for the three XML dialects the
application reads or writes:

- XCCDF benchmarks shipped inside DISA STIG zips
- the DISA CCI list (``U_CCI_List.xml``) and the NIST SP 800-53 controls feed
- STIG Viewer checklists (CKL)
"""

from __future__ import annotations
from typing import Dict, FrozenSet, Tuple

from stigqter.core.constants import STIG_VIEWER_VERSION


class Sch:
    """
    XML schema definitions for STIG/CKL processing.

    Thread-safe: Yes (immutable class constants)
    """

    # Root element and version comment
    ROOT = "CHECKLIST"
    COMMENT = f"DISA STIG Viewer :: {STIG_VIEWER_VERSION}"

    NS: Dict[str, str] = {
        "xccdf": "http://checklists.nist.gov/xccdf/1.1",
        "xccdf12": "http://checklists.nist.gov/xccdf/1.2",
        "dc": "http://purl.org/dc/elements/1.1/",
        "cci": "http://iase.disa.mil/cci",
        "controls": "http://scap.nist.gov/schema/sp800-53/feed/2.0",
    }

    # ------------------------------------------------------------------ CKL

    # Asset metadata elements (in ASSET section)
    ASSET: Tuple[str, ...] = (
        "ROLE",
        "ASSET_TYPE",
        "MARKING",
        "HOST_NAME",
        "HOST_IP",
        "HOST_MAC",
        "HOST_FQDN",
        "TARGET_COMMENT",
        "TECH_AREA",
        "TARGET_KEY",
        "WEB_OR_DATABASE",
        "WEB_DB_SITE",
        "WEB_DB_INSTANCE",
    )

    # STIG metadata elements (in STIG_INFO section)
    STIG: Tuple[str, ...] = (
        "version",
        "classification",
        "customname",
        "stigid",
        "description",
        "filename",
        "releaseinfo",
        "title",
        "uuid",
        "notice",
        "source",
    )

    # Vulnerability metadata elements (in STIG_DATA within VULN)
    VULN: Tuple[str, ...] = (
        "Vuln_Num",
        "Severity",
        "Group_Title",
        "Rule_ID",
        "Rule_Ver",
        "Rule_Title",
        "Vuln_Discuss",
        "IA_Controls",
        "Check_Content",
        "Fix_Text",
        "False_Positives",
        "False_Negatives",
        "Documentable",
        "Mitigations",
        "Potential_Impact",
        "Third_Party_Tools",
        "Mitigation_Control",
        "Responsibility",
        "Security_Override_Guidance",
        "Check_Content_Ref",
        "Weight",
        "Class",
        "STIGRef",
        "TargetKey",
        "STIG_UUID",
        "CCI_REF",
    )

    # Status tracking elements (in VULN section)
    STATUS: Tuple[str, ...] = (
        "STATUS",
        "FINDING_DETAILS",
        "COMMENTS",
        "SEVERITY_OVERRIDE",
        "SEVERITY_JUSTIFICATION",
    )

    STIG_DATA = "STIG_DATA"
    VULN_ATTRIBUTE = "VULN_ATTRIBUTE"
    ATTRIBUTE_DATA = "ATTRIBUTE_DATA"
    SI_DATA = "SI_DATA"
    SID_NAME = "SID_NAME"
    SID_DATA = "SID_DATA"

    # Valid security markings
    MARKS: FrozenSet[str] = frozenset(["CUI", "UNCLASSIFIED", "SECRET", "TOP SECRET", "TS", "S", "U"])

    # Default values for mandatory CKL elements
    DEFS: Dict[str, str] = {
        "Check_Content_Ref": "M",
        "Weight": "10.0",
        "Class": "Unclass",
        "Documentable": "false",
        "MARKING": "CUI",
        "ROLE": "None",
        "ASSET_TYPE": "Computing",
        "WEB_OR_DATABASE": "false",
        "TARGET_KEY": "",
        "customname": "",
        "notice": "terms-of-use",
        "source": "STIG.DOD.MIL",
        "classification": "UNCLASSIFIED",
    }

    # ---------------------------------------------------------------- XCCDF

    XCCDF_BENCHMARK = "Benchmark"
    XCCDF_GROUP = "Group"
    XCCDF_RULE = "Rule"
    XCCDF_PROFILE = "Profile"
    XCCDF_TITLE = "title"
    XCCDF_DESCRIPTION = "description"
    XCCDF_VERSION = "version"
    XCCDF_PLAIN_TEXT = "plain-text"
    XCCDF_RELEASE_INFO = "release-info"
    XCCDF_IDENT = "ident"
    XCCDF_FIXTEXT = "fixtext"
    XCCDF_CHECK = "check"
    XCCDF_CHECK_CONTENT = "check-content"
    XCCDF_CHECK_CONTENT_REF = "check-content-ref"

    # Pseudo-XML tags embedded in a Rule description, mapped to STIGCheck fields
    RULE_DESCRIPTION: Dict[str, str] = {
        "VulnDiscussion": "vuln_discussion",
        "FalsePositives": "false_positives",
        "FalseNegatives": "false_negatives",
        "Documentable": "documentable",
        "Mitigations": "mitigations",
        "SeverityOverrideGuidance": "severity_override_guidance",
        "PotentialImpacts": "potential_impact",
        "ThirdPartyTools": "third_party_tools",
        "MitigationControl": "mitigation_control",
        "Responsibility": "responsibility",
        "IAControls": "ia_controls",
    }

    # ------------------------------------------------------ CCI list / NIST

    CCI_ITEM = "cci_item"
    CCI_DEFINITION = "definition"
    CCI_REFERENCE = "reference"

    NIST_CONTROL = "control"
    NIST_ENHANCEMENT = "control-enhancement"
    NIST_FAMILY = "family"
    NIST_NUMBER = "number"
    NIST_TITLE = "title"
    NIST_STATEMENT = "statement"
    NIST_DESCRIPTION = "description"

    @staticmethod
    def ns(tag: str, namespace: str = "xccdf") -> str:
        """
        Get namespaced tag for XML element.

        Example:
            >>> Sch.ns("cci_item", "cci")
            '{http://iase.disa.mil/cci}cci_item'
        """
        if namespace in Sch.NS:
            return f"{{{Sch.NS[namespace]}}}{tag}"
        return tag

    @staticmethod
    def strip_ns(tag: str) -> str:
        """
        Remove namespace prefix from tag.

        Example:
            >>> Sch.strip_ns("{http://checklists.nist.gov/xccdf/1.1}Rule")
            'Rule'
        """
        if not isinstance(tag, str):
            return ""
        if "}" in tag:
            return tag.split("}", 1)[1]
        return tag
