"""Tests for the command-line interface."""

import json

import pytest

from stigqter.core.config import Cfg
from stigqter.core.constants import VERSION
from stigqter.ui.cli import build_parser, exit_code, main

from tests import samples


@pytest.fixture(autouse=True)
def restore_db_file():
    saved = Cfg.DB_FILE
    yield
    Cfg.DB_FILE = saved


def run(capsys, *argv):
    """Run main() and return (exit code, parsed JSON output or None)."""
    code = main(list(argv))
    out = capsys.readouterr().out
    try:
        return code, json.loads(out)
    except ValueError:
        return code, None


class TestParser:

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            build_parser().parse_args(["--version"])
        assert exc.value.code == 0
        assert VERSION in capsys.readouterr().out

    def test_repeatable_stig(self):
        args = build_parser().parse_args(["--add-asset", "WEB01", "--stig", "1", "--stig", "2"])
        assert args.stig == [1, 2]

    def test_assets_requires_export(self, db_path, capsys):
        with pytest.raises(SystemExit):
            main(["--db", str(db_path), "--assets", "1"])


class TestExitCode:

    @pytest.mark.parametrize(
        "result, expected",
        [
            ({"ok": True}, 0),
            ({"ok": False, "added": ["a.zip"], "failed": ["b.zip"]}, 2),
            ({"ok": False, "added": [], "failed": ["b.zip"]}, 1),
            ({"ok": False, "updated": 0}, 1),
        ],
    )
    def test_exit_code(self, result, expected):
        assert exit_code(result) == expected


class TestCommands:

    def test_no_command_prints_help(self, db_path, capsys):
        assert main(["--db", str(db_path)]) == 0
        assert "usage: stigqter" in capsys.readouterr().out

    def test_db_option_selects_file(self, db_path, capsys):
        code, out = run(capsys, "--db", str(db_path), "--list-stigs")
        assert code == 0
        assert out == {"ok": True, "stigs": []}
        assert db_path.exists()
        assert Cfg.DB_FILE == db_path

    def test_update_ccis_from_files(self, db_path, cci_zip_file, nist_feed_file, capsys):
        code, out = run(
            capsys, "--db", str(db_path), "--update-ccis",
            "--cci-source", str(cci_zip_file), "--controls-source", str(nist_feed_file),
        )
        assert code == 0
        assert out["ccis"] == 3

    def test_add_stig_and_asset(self, db_path, cci_zip_file, nist_feed_file, stig_zip_file, capsys):
        run(capsys, "--db", str(db_path), "--update-ccis",
            "--cci-source", str(cci_zip_file), "--controls-source", str(nist_feed_file))
        code, out = run(capsys, "--db", str(db_path), "--add-stigs", str(stig_zip_file))
        assert code == 0
        assert len(out["added"]) == 1

        _, listing = run(capsys, "--db", str(db_path), "--list-stigs")
        stig_id = listing["stigs"][0]["id"]
        assert listing["stigs"][0]["title"] == samples.STIG_TITLE

        code, out = run(capsys, "--db", str(db_path), "--add-asset", "WEB01",
                        "--ip", "10.0.0.5", "--mac", "aa-bb-cc-dd-ee-ff", "--stig", str(stig_id))
        assert code == 0
        assert out["mapped"] == [stig_id]

        _, assets = run(capsys, "--db", str(db_path), "--list-assets")
        assert assets["assets"][0]["host_mac"] == "AA:BB:CC:DD:EE:FF"
        assert assets["assets"][0]["stigs"] == [stig_id]

    def test_partial_failure_exit_code(self, loaded_db, temp_dir, capsys):
        missing = temp_dir / "missing.zip"
        other = samples.write_stig_zip(temp_dir, "U_Other.zip")
        code, out = run(capsys, "--db", str(loaded_db), "--delete-stigs", "1", "999")
        assert code == 2
        assert out["deleted"] == [1]
        code, out = run(capsys, "--db", str(loaded_db), "--add-stigs", str(missing), str(other))
        assert code == 2
        assert out["failed"] == [str(missing)]

    def test_invalid_asset_name(self, db_path, capsys):
        assert main(["--db", str(db_path), "--add-asset", "bad name"]) == 1
        assert "Invalid host name" in capsys.readouterr().err


class TestStatusCommands:

    def test_set_status_by_vuln_number(self, assessed_db, capsys):
        code, out = run(capsys, "--db", str(assessed_db), "--set-status", "WEB01", "V-100003",
                        "not_applicable", "--comments", "No console")
        assert code == 0
        assert out["status"] == "Not_Applicable"
        assert len(out["updated"]) == 1

        _, stats = run(capsys, "--db", str(assessed_db), "--asset-stats", "WEB01")
        assert stats["stats"] == {
            "total": 3,
            "open": 1,
            "not_a_finding": 1,
            "not_applicable": 1,
            "not_reviewed": 0,
        }

    def test_set_status_unknown_rule(self, assessed_db, capsys):
        code, out = run(capsys, "--db", str(assessed_db), "--set-status", "WEB01", "V-1", "Open")
        assert code == 1
        assert out["updated"] == []

    def test_set_status_invalid_value(self, assessed_db, capsys):
        assert main(["--db", str(assessed_db), "--set-status", "WEB01", "V-100001", "Fixed"]) == 1
        assert "Invalid status" in capsys.readouterr().err

    def test_unknown_asset(self, assessed_db, capsys):
        assert main(["--db", str(assessed_db), "--asset-stats", "NOPE"]) == 1
        assert "Asset not found" in capsys.readouterr().err

    def test_map_unmap_and_delete_asset(self, assessed_db, capsys):
        code, _ = run(capsys, "--db", str(assessed_db), "--delete-asset", "WEB01")
        assert code == 1
        code, out = run(capsys, "--db", str(assessed_db), "--unmap-stig", "WEB01", "1")
        assert code == 0
        code, _ = run(capsys, "--db", str(assessed_db), "--map-stig", "WEB01", "1")
        assert code == 0
        code, _ = run(capsys, "--db", str(assessed_db), "--unmap-stig", "WEB01", "1")
        assert code == 0
        code, out = run(capsys, "--db", str(assessed_db), "--delete-asset", "WEB01")
        assert code == 0
        assert out == {"ok": True, "asset": "WEB01"}


class TestReports:

    def test_export_and_reports(self, assessed_db, temp_dir, capsys):
        code, out = run(capsys, "--db", str(assessed_db), "--export-ckls", str(temp_dir / "ckl"))
        assert code == 0
        assert len(out["written"]) == 1

        code, out = run(capsys, "--db", str(assessed_db), "--emass-report", str(temp_dir / "tr.xlsx"))
        assert code == 0
        assert out["non_compliant"] == 1

        code, out = run(capsys, "--db", str(assessed_db), "--findings-report", str(temp_dir / "open.xlsx"))
        assert code == 0
        assert out["findings"] == 1

    def test_reset_db(self, assessed_db, capsys):
        code, _ = run(capsys, "--db", str(assessed_db), "--reset-db")
        assert code == 0
        _, listing = run(capsys, "--db", str(assessed_db), "--list-assets")
        assert listing["assets"] == []

    def test_export_defaults_to_exports_dir(self, assessed_db, temp_dir, capsys, monkeypatch):
        monkeypatch.setattr(Cfg, "EXPORT_DIR", temp_dir / "exports")
        code, out = run(capsys, "--db", str(assessed_db), "--export-ckls")
        assert code == 0
        assert out["written"][0].startswith(str(temp_dir / "exports"))


class TestMaintenance:

    def test_cleanup_old(self, db_path, temp_dir, capsys, monkeypatch):
        backups = temp_dir / "backups"
        backups.mkdir()
        for i in range(3):
            (backups / f"WEB01_{i}.ckl.bak").write_text("x")
        monkeypatch.setattr(Cfg, "BACKUP_DIR", backups)
        monkeypatch.setattr(Cfg, "KEEP_BACKUPS", 1)

        code, out = run(capsys, "--db", str(db_path), "--cleanup-old")
        assert code == 0
        assert out["backups_removed"] == 2
        assert len(list(backups.glob("*.bak"))) == 1
