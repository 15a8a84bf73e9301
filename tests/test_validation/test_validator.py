"""
Tests for STIG Viewer validation module.

Tests CKL and XCCDF validation functions for STIG Viewer 2.18 compatibility.
"""

from __future__ import annotations
import pytest
import xml.etree.ElementTree as ET

from stigqter.validation.validator import Val
from stigqter.exceptions import ValidationError

from tests import samples


def vuln_xml(status: str = "Open", severity: str = "medium", vuln_num: str = "V-100001", rule: str = "SV-100001r1_rule") -> str:
    attrs = [
        ("Vuln_Num", vuln_num),
        ("Severity", severity),
        ("Group_Title", "SRG-OS-000001"),
        ("Rule_ID", rule),
        ("Rule_Ver", "TS-00-000001"),
        ("Rule_Title", "Title"),
        ("Vuln_Discuss", "Discussion"),
        ("Check_Content", "Check"),
        ("Fix_Text", "Fix"),
    ]
    data = "".join(
        f"<STIG_DATA><VULN_ATTRIBUTE>{a}</VULN_ATTRIBUTE><ATTRIBUTE_DATA>{v}</ATTRIBUTE_DATA></STIG_DATA>"
        for a, v in attrs
    )
    return f"<VULN>{data}<STATUS>{status}</STATUS></VULN>"


def checklist(vulns: str = "", host: str = "TestHost") -> ET.Element:
    return ET.fromstring(
        "<CHECKLIST>"
        f"<ASSET><ASSET_TYPE>Computing</ASSET_TYPE><HOST_NAME>{host}</HOST_NAME></ASSET>"
        f"<STIGS><iSTIG><STIG_INFO/>{vulns}</iSTIG></STIGS>"
        "</CHECKLIST>"
    )


class TestValValidateCKL:
    """Tests for Val.validate_ckl() method."""

    def test_valid_minimal_ckl(self):
        report = Val.validate_ckl(checklist(vuln_xml()))
        assert report["valid"]
        assert report["errors"] == []
        assert report["vuln_count"] == 1

    def test_accepts_element_tree(self):
        report = Val.validate_ckl(ET.ElementTree(checklist(vuln_xml())))
        assert report["valid"]

    def test_sample_checklist_file(self, temp_dir):
        path = samples.write_ckl(temp_dir / "WEB01.ckl", results=[("V-100001", samples.RULES[0], "Open", "")])
        assert Val.validate_ckl(ET.parse(str(path)))["valid"]

    def test_empty_checklist_warns(self):
        report = Val.validate_ckl(checklist())
        assert report["valid"]
        assert "No vulnerabilities found in checklist" in report["warnings"]

    def test_wrong_root(self):
        with pytest.raises(ValidationError, match="Invalid root element"):
            Val.validate_ckl(ET.fromstring("<Benchmark/>"))

    def test_missing_host_name(self):
        report = Val.validate_ckl(checklist(vuln_xml(), host=""), strict=False)
        assert report["valid"]
        assert report["errors"] == []
        assert any(w.startswith("Missing HOST_NAME in ASSET") for w in report["warnings"])

    def test_missing_stigs(self):
        root = ET.fromstring("<CHECKLIST><ASSET><HOST_NAME>H</HOST_NAME></ASSET></CHECKLIST>")
        report = Val.validate_ckl(root, strict=False)
        assert "Missing required STIGS element" in report["errors"]
        assert "Missing ASSET_TYPE element in ASSET" in report["warnings"]

    @pytest.mark.parametrize("status", ["Not_Reviewed", "Open", "NotAFinding", "Not_Applicable"])
    def test_valid_statuses(self, status):
        assert Val.validate_ckl(checklist(vuln_xml(status=status)))["valid"]

    def test_invalid_status(self):
        report = Val.validate_ckl(checklist(vuln_xml(status="Passed")), strict=False)
        assert any("Invalid status: 'Passed'" in e for e in report["errors"])

    def test_invalid_severity(self):
        report = Val.validate_ckl(checklist(vuln_xml(severity="critical")), strict=False)
        assert any("Invalid severity" in e for e in report["errors"])

    def test_invalid_vuln_num_and_rule(self):
        report = Val.validate_ckl(checklist(vuln_xml(vuln_num="100001", rule="")), strict=False)
        assert any("invalid Vuln_Num" in e for e in report["errors"])
        assert any("Missing Rule_ID" in e for e in report["errors"])

    def test_missing_attributes(self):
        vuln = "<VULN><STATUS>Open</STATUS></VULN>"
        report = Val.validate_ckl(checklist(vuln), strict=False)
        assert report["errors"][0].startswith("VULN[0]: Missing required attributes")

    def test_stig_info_without_match_keys_warns(self):
        report = Val.validate_ckl(checklist(vuln_xml()))
        assert any(
            w.startswith("iSTIG[0]: STIG_INFO has no title, version, releaseinfo") for w in report["warnings"]
        )

    def test_repeated_rule_warns(self):
        report = Val.validate_ckl(checklist(vuln_xml() + vuln_xml(vuln_num="V-100002")))
        assert report["valid"]
        assert "iSTIG[0]: Rule SV-100001r1_rule appears more than once" in report["warnings"]

    def test_strict_summarises_errors(self):
        vulns = "".join(vuln_xml(status="Bad") for _ in range(12))
        with pytest.raises(ValidationError, match="and 2 more errors"):
            Val.validate_ckl(checklist(vulns))


class TestValValidateXCCDF:

    def test_sample_benchmark(self):
        report = Val.validate_xccdf(ET.fromstring(samples.XCCDF.encode("utf-8")))
        assert report["valid"]
        assert report["group_count"] == 3
        assert report["rule_count"] == 3

    def test_not_a_benchmark(self):
        report = Val.validate_xccdf(ET.fromstring(samples.CCI_LIST))
        assert not report["valid"]
        assert "No Rule elements found in benchmark" in report["warnings"]

    def test_untitled_benchmark(self):
        xccdf = samples.XCCDF.replace(f"<title>{samples.STIG_TITLE}</title>", "")
        report = Val.validate_xccdf(ET.fromstring(xccdf.encode("utf-8")))
        assert report["errors"] == ["Benchmark has no title"]

    def test_rules_without_cci_and_bad_version(self):
        xccdf = (
            samples.XCCDF.replace('<ident system="http://cyber.mil/cci">CCI-001234</ident>', "")
            .replace(f"<version>{samples.STIG_VERSION}</version>", "<version>2.1</version>")
        )
        report = Val.validate_xccdf(ET.fromstring(xccdf.encode("utf-8")))
        assert report["valid"]
        assert "Benchmark version is missing or not a number; stored as 0" in report["warnings"]
        assert any(w.startswith("1 rule(s) have no CCI ident") for w in report["warnings"])
