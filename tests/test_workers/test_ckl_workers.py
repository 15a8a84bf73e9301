"""
Tests for checklist import and export.

Import builds the asset from the ASSET block and copies per-rule results;
export writes STIG Viewer checklists that read back to the same results.
"""

import pytest

from stigqter.core.constants import Status
from stigqter.db.manager import DbManager
from stigqter.db.models import STIG, Asset
from stigqter.exceptions import ValidationError
from stigqter.io.file_ops import FO
from stigqter.validation.validator import Val
from stigqter.workers import CCIAddWorker, CKLExportWorker, CKLImportWorker, STIGAddWorker
from stigqter.workers.ckl_export import ckl_file_name
from stigqter.workers.ckl_import import asset_from_ckl, stig_key
from stigqter.xml.schema import Sch
from stigqter.xml.utils import XmlUtils

from tests import samples


def results_by_rule(db_path, host="WEB01"):
    with DbManager(db_path) as db:
        asset = db.get_asset(host)
        stig = db.get_stigs(asset)[0]
        return {
            db.get_stig_check(c.stig_check_id).rule: c for c in db.get_ckl_checks(asset, stig)
        }


class TestHelpers:

    def test_asset_from_ckl(self, ckl_file):
        asset = asset_from_ckl(FO.parse_xml(ckl_file))
        assert asset.host_name == "WEB01"
        assert asset.host_ip == "10.0.0.5"
        assert asset.host_mac == "00:11:22:33:44:55"
        assert asset.host_fqdn == "web01.example.mil"
        assert asset.tech_area == "Web Review"
        assert asset.target_key == "4096"
        assert asset.web_or_database is False

    def test_blank_host_name_uses_file_stem(self, temp_dir):
        root = FO.parse_xml(samples.write_ckl(temp_dir / "web01 (copy).ckl", host=""))
        assert asset_from_ckl(root, "web01 (copy)").host_name == "web01_copy"
        with pytest.raises(ValidationError, match="Empty host name"):
            asset_from_ckl(root)

    def test_stig_key(self, ckl_file):
        istig = next(FO.parse_xml(ckl_file).iter("iSTIG"))
        assert stig_key(istig) == (samples.STIG_TITLE, samples.STIG_VERSION, samples.STIG_RELEASE)

    def test_ckl_file_name(self):
        stig = STIG(title="Test", version=2, release=samples.STIG_RELEASE, benchmark_id="Test_Server_STIG")
        assert ckl_file_name(Asset(host_name="WEB01"), stig) == "WEB01_Test_Server_STIG_V2R3.ckl"

    def test_ckl_file_name_without_benchmark(self):
        stig = STIG(title="Windows 10 / 11", version=1, release="Release: 4.2")
        assert ckl_file_name(Asset(host_name="PC01"), stig) == "PC01_Windows_10_11_V1R4.2.ckl"


class TestCKLImportWorker:

    def test_import_creates_asset_and_results(self, loaded_db, ckl_file):
        result = CKLImportWorker([ckl_file], db_path=loaded_db).run()

        assert result["ok"]
        assert result["imported"] == ["WEB01.ckl"]
        assert result["updated"] == 2
        assert result["skipped"] == []

        checks = results_by_rule(loaded_db)
        assert len(checks) == 3
        first = checks[samples.RULES[0]]
        assert first.status is Status.OPEN
        assert first.finding_details == "Accounts are managed by hand."
        assert first.comments == "reviewed"
        assert checks[samples.RULES[1]].status is Status.NOT_A_FINDING
        assert checks[samples.RULES[2]].status is Status.NOT_REVIEWED

    def test_reimport_updates_existing_asset(self, assessed_db, temp_dir):
        path = samples.write_ckl(
            temp_dir / "again.ckl", results=[("V-100001", samples.RULES[0], "NotAFinding", "Fixed")]
        )
        result = CKLImportWorker([path], db_path=assessed_db).run()
        assert result["updated"] == 1
        with DbManager(assessed_db) as db:
            assert len(db.get_assets()) == 1
        assert results_by_rule(assessed_db)[samples.RULES[0]].status is Status.NOT_A_FINDING

    def test_unknown_stig_skipped(self, loaded_db, temp_dir):
        path = samples.write_ckl(temp_dir / "other.ckl", host="DB01", title="Other STIG")
        result = CKLImportWorker([path], db_path=loaded_db).run()
        assert result["skipped"] == ["Other STIG"]
        assert result["imported"] == ["other.ckl"]
        assert any("is not in the database" in w for w in result["warnings"])

    def test_unknown_rule_warns(self, loaded_db, temp_dir):
        path = samples.write_ckl(temp_dir / "odd.ckl", results=[("V-1", "SV-1r9_rule", "Open", "")])
        result = CKLImportWorker([path], db_path=loaded_db).run()
        assert result["updated"] == 0
        assert any("SV-1r9_rule is not part of" in w for w in result["warnings"])

    def test_invalid_checklist_fails(self, loaded_db, temp_dir):
        path = samples.write_ckl(temp_dir / "bad.ckl", results=[("V-100001", samples.RULES[0], "Passed", "")])
        result = CKLImportWorker([path], db_path=loaded_db).run()
        assert result["ok"] is False
        assert result["failed"] == [str(path)]

    def test_bad_host_name_fails(self, loaded_db, temp_dir):
        path = samples.write_ckl(temp_dir / "host.ckl", host="web server 1")
        result = CKLImportWorker([path], db_path=loaded_db).run()
        assert result["failed"] == [str(path)]

    def test_blank_host_name_imports_under_file_stem(self, loaded_db, temp_dir):
        path = samples.write_ckl(
            temp_dir / "APP02.ckl", host="", results=[("V-100001", samples.RULES[0], "Open", "Shared accounts")]
        )
        result = CKLImportWorker([path], db_path=loaded_db).run()
        assert result["ok"]
        assert result["imported"] == ["APP02.ckl"]
        assert "APP02 has no HOST_NAME; importing it as APP02" in result["warnings"]
        assert results_by_rule(loaded_db, host="APP02")[samples.RULES[0]].status is Status.OPEN


class TestCKLExportWorker:

    def test_export_writes_valid_checklist(self, assessed_db, temp_dir):
        out_dir = temp_dir / "export"
        result = CKLExportWorker(out_dir, db_path=assessed_db).run()

        assert result["ok"]
        assert len(result["written"]) == 1
        path = out_dir / "WEB01_Test_Server_STIG_V2R3.ckl"
        assert result["written"] == [str(path)]

        raw = path.read_text(encoding="utf-8")
        assert raw.startswith('<?xml version="1.0" encoding="UTF-8"?>\n')
        assert f"<!--{Sch.COMMENT}-->" in raw

        root = FO.parse_xml(path)
        assert Val.validate_ckl(root)["valid"]
        vulns = {XmlUtils.get_stig_data(v)["Rule_ID"][0]: v for v in root.iter("VULN")}
        assert set(vulns) == set(samples.RULES)

        first = vulns[samples.RULES[0]]
        data = XmlUtils.get_stig_data(first)
        assert [sd.findtext("VULN_ATTRIBUTE") for sd in first.findall("STIG_DATA")] == list(Sch.VULN)
        assert data["Severity"] == ["high"]
        assert data["CCI_REF"] == ["CCI-000015"]
        assert data["STIGRef"] == [f"{samples.STIG_TITLE} :: Version 2, {samples.STIG_RELEASE}"]
        assert first.findtext("STATUS") == "Open"
        assert first.findtext("FINDING_DETAILS") == "Accounts are managed by hand."

        info = XmlUtils.get_si_data(next(root.iter("iSTIG")))
        assert info["stigid"] == samples.BENCHMARK_ID
        assert info["releaseinfo"] == samples.STIG_RELEASE

    def test_round_trip(self, assessed_db, temp_dir, nist_feed_file, cci_zip_file, stig_zip_file):
        out_dir = temp_dir / "export"
        written = CKLExportWorker(out_dir, db_path=assessed_db).run()["written"]

        fresh = temp_dir / "fresh.db"
        CCIAddWorker(str(cci_zip_file), str(nist_feed_file), db_path=fresh).run()
        STIGAddWorker([stig_zip_file], db_path=fresh).run()
        CKLImportWorker(written, db_path=fresh).run()

        before = {r: (c.status, c.finding_details, c.comments) for r, c in results_by_rule(assessed_db).items()}
        after = {r: (c.status, c.finding_details, c.comments) for r, c in results_by_rule(fresh).items()}
        assert after == before

    def test_selected_assets(self, assessed_db, temp_dir):
        with DbManager(assessed_db) as db:
            db.add_asset(Asset(host_name="IDLE01"))
            idle = db.get_asset("IDLE01").id
        result = CKLExportWorker(temp_dir / "out", asset_ids=[idle, 999], db_path=assessed_db).run()
        assert result["written"] == []
        assert "Asset 999 does not exist" in result["warnings"]


@pytest.mark.integration
def test_export_progress_counts_pairs(assessed_db, temp_dir):
    worker = CKLExportWorker(temp_dir / "out", db_path=assessed_db)
    worker.run()
    assert (worker.maximum, worker.value) == (1, 1)
