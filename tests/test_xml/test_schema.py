"""Tests for XML schema module (Sch class)."""

import unittest
from stigqter.xml.schema import Sch


class TestSchemaConstants(unittest.TestCase):
    """Test schema constant definitions."""

    def test_root_element(self):
        self.assertEqual(Sch.ROOT, "CHECKLIST")

    def test_comment_contains_version(self):
        self.assertIn("DISA STIG Viewer", Sch.COMMENT)
        self.assertIn("2.18", Sch.COMMENT)

    def test_asset_order(self):
        self.assertEqual(Sch.ASSET[0], "ROLE")
        self.assertEqual(Sch.ASSET[-1], "WEB_DB_INSTANCE")
        self.assertIn("HOST_FQDN", Sch.ASSET)

    def test_stig_info_fields(self):
        for field in ("version", "stigid", "releaseinfo", "title", "uuid"):
            self.assertIn(field, Sch.STIG)

    def test_vuln_fields(self):
        self.assertEqual(Sch.VULN[0], "Vuln_Num")
        self.assertEqual(Sch.VULN[-1], "CCI_REF")
        self.assertEqual(len(Sch.VULN), len(set(Sch.VULN)))

    def test_status_fields(self):
        self.assertEqual(
            Sch.STATUS,
            ("STATUS", "FINDING_DETAILS", "COMMENTS", "SEVERITY_OVERRIDE", "SEVERITY_JUSTIFICATION"),
        )

    def test_defaults(self):
        self.assertEqual(Sch.DEFS["ROLE"], "None")
        self.assertEqual(Sch.DEFS["MARKING"], "CUI")
        self.assertEqual(Sch.DEFS["Check_Content_Ref"], "M")

    def test_rule_description_tags(self):
        self.assertEqual(Sch.RULE_DESCRIPTION["VulnDiscussion"], "vuln_discussion")
        self.assertEqual(Sch.RULE_DESCRIPTION["PotentialImpacts"], "potential_impact")


class TestNamespaces(unittest.TestCase):

    def test_ns(self):
        self.assertEqual(Sch.ns("cci_item", "cci"), "{http://iase.disa.mil/cci}cci_item")
        self.assertEqual(Sch.ns("Rule", "unknown"), "Rule")

    def test_strip_ns(self):
        self.assertEqual(Sch.strip_ns("{http://checklists.nist.gov/xccdf/1.1}Rule"), "Rule")
        self.assertEqual(Sch.strip_ns("Rule"), "Rule")
        self.assertEqual(Sch.strip_ns(None), "")


if __name__ == "__main__":
    unittest.main()
