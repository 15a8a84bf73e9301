"""Command-line interface and main entry point."""

from __future__ import annotations
from dataclasses import asdict
from typing import Any, Dict, List, Optional
import argparse
import queue
import sys
import json
import gc

from stigqter.core.config import Cfg
from stigqter.core.constants import APP_NAME, VERSION, Status
from stigqter.core.deps import Deps
from stigqter.core.logging import LOG
from stigqter.core.state import GLOBAL_STATE as GLOBAL
from stigqter.db.manager import DbManager
from stigqter.db.models import Asset, print_stig
from stigqter.exceptions import STIGError, ValidationError
from stigqter.xml.sanitizer import San
from stigqter.workers import (
    AssetAddWorker,
    CCIAddWorker,
    CCIDeleteWorker,
    CKLExportWorker,
    CKLImportWorker,
    EMASSImportWorker,
    EMASSReportWorker,
    FindingsReportWorker,
    MapUnmappedWorker,
    STIGAddWorker,
    STIGDeleteWorker,
    Worker,
)

# Keys whose non-empty value means a failed worker still did part of its job
PARTIAL_KEYS = ("added", "deleted", "mapped", "imported", "written", "updated")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stigqter",
        description=f"{APP_NAME} v{VERSION}",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    libs = ", ".join(f"{k} {v}" for k, v in Deps.versions().items())
    parser.add_argument("--version", action="version", version=f"{VERSION} ({libs})")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--db", help="Database file (default: $STIGQTER_DB or ~/.stigqter/STIGQter.db)")

    cci_group = parser.add_argument_group("CCI / NIST 800-53 Index")
    cci_group.add_argument("--update-ccis", action="store_true", help="Download and index the CCI list and NIST controls")
    cci_group.add_argument("--cci-source", help="CCI list URL, zip or XML (default: DISA u_cci_list.zip)")
    cci_group.add_argument("--controls-source", help="NIST 800-53 rev4 controls feed URL or XML")
    cci_group.add_argument("--delete-ccis", action="store_true", help="Remove every family, control and CCI")
    cci_group.add_argument("--map-unmapped", action="store_true", help="Point checks with missing CCIs at CCI-000366")

    stig_group = parser.add_argument_group("STIGs")
    stig_group.add_argument("--add-stigs", nargs="+", metavar="FILE", help="Import STIG zips or XCCDF files")
    stig_group.add_argument("--delete-stigs", nargs="+", type=int, metavar="ID", help="Delete STIGs by id")
    stig_group.add_argument("--list-stigs", action="store_true", help="List stored STIGs")

    asset_group = parser.add_argument_group("Assets")
    asset_group.add_argument("--add-asset", metavar="NAME", help="Create an asset")
    asset_group.add_argument("--ip", default="", help="Asset IP")
    asset_group.add_argument("--mac", default="", help="Asset MAC")
    asset_group.add_argument("--fqdn", default="", help="Asset FQDN")
    asset_group.add_argument("--tech-area", default="", help="Asset technology area")
    asset_group.add_argument("--asset-type", default="Computing", help="Asset type (default: Computing)")
    asset_group.add_argument("--stig", action="append", type=int, default=[], metavar="ID",
                             help="STIG id to map to the new asset (repeatable)")
    asset_group.add_argument("--delete-asset", metavar="ASSET", help="Delete an asset (name or id)")
    asset_group.add_argument("--map-stig", nargs=2, metavar=("ASSET", "STIG_ID"), help="Map a STIG to an asset")
    asset_group.add_argument("--unmap-stig", nargs=2, metavar=("ASSET", "STIG_ID"), help="Remove a STIG from an asset")
    asset_group.add_argument("--list-assets", action="store_true", help="List stored assets")
    asset_group.add_argument("--asset-stats", metavar="ASSET", help="Check counts per status for an asset")

    status_group = parser.add_argument_group("Check Results")
    status_group.add_argument("--set-status", nargs=3, metavar=("ASSET", "RULE", "STATUS"),
                              help="Set the status of a rule (rule id or V- number) on an asset")
    status_group.add_argument("--details", help="Finding details for --set-status")
    status_group.add_argument("--comments", help="Comments for --set-status")

    ckl_group = parser.add_argument_group("Checklists")
    ckl_group.add_argument("--import-ckls", nargs="+", metavar="FILE", help="Import CKL files")
    ckl_group.add_argument(
        "--export-ckls",
        nargs="?",
        const=str(Cfg.EXPORT_DIR),
        metavar="DIR",
        help="Export one CKL per asset and STIG (default: ~/.stigqter/exports)",
    )
    ckl_group.add_argument("--assets", nargs="+", type=int, metavar="ID", help="Limit --export-ckls to these assets")

    emass_group = parser.add_argument_group("eMASS")
    emass_group.add_argument("--emass-report", metavar="FILE", help="Write the eMASS TR Import workbook (.xlsx)")
    emass_group.add_argument("--import-emass", metavar="FILE", help="Import an eMASS TR export (.xlsx)")
    emass_group.add_argument("--delete-emass", action="store_true", help="Clear imported eMASS results")

    report_group = parser.add_argument_group("Reports")
    report_group.add_argument("--findings-report", metavar="FILE", help="Write open findings as a workbook (.xlsx)")

    db_group = parser.add_argument_group("Database")
    db_group.add_argument("--reset-db", action="store_true", help="Drop all data and recreate the schema")
    db_group.add_argument("--cleanup-old", action="store_true", help="Prune old backups and rotated logs")

    return parser


def _emit(result: Dict[str, Any]) -> None:
    print(json.dumps(result, indent=2, ensure_ascii=False, default=str))


def exit_code(result: Dict[str, Any]) -> int:
    """0 on success, 2 when part of the work was done, 1 otherwise."""
    if result.get("ok"):
        return 0
    if any(result.get(key) for key in PARTIAL_KEYS):
        return 2
    return 1


def run_worker(worker: Worker) -> int:
    """Run a worker on its own thread and print its result."""
    worker.start()
    while True:
        try:
            event = worker.events.get(timeout=0.2)
        except queue.Empty:
            if not worker.running:
                break
            continue
        if event.kind == "progress" and worker.maximum:
            LOG.d(f"{worker.name}: {event.value}/{worker.maximum}")
        if event.kind in ("finished", "error"):
            break

    try:
        result = worker.join()
    except InterruptedError:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    _emit(result)
    return exit_code(result)


def _asset(db: DbManager, key: str) -> Asset:
    asset = db.get_asset(int(key)) if key.isdigit() else db.get_asset(key)
    if asset is None:
        raise ValidationError(f"Asset not found: {key}")
    return asset


def _stig(db: DbManager, key: str):
    stig = db.get_stig(int(key)) if str(key).isdigit() else None
    if stig is None:
        raise ValidationError(f"STIG not found: {key}")
    return stig


def set_status(db: DbManager, asset: Asset, rule: str, status: str,
               details: Optional[str] = None, comments: Optional[str] = None) -> List[str]:
    """Update every CKLCheck of the asset whose rule id or vuln number matches."""
    new_status = San.status(status)
    updated: List[str] = []
    for stig in db.get_stigs(asset):
        for check in db.get_stig_checks(stig):
            if rule not in (check.rule, check.vuln_num):
                continue
            ckl = db.get_ckl_check(asset, check)
            if ckl is None:
                continue
            ckl.status = new_status
            if details is not None:
                ckl.finding_details = San.xml(details)
            if comments is not None:
                ckl.comments = San.xml(comments)
            if db.update_ckl_check(ckl):
                updated.append(f"{print_stig(stig)}: {check.rule}")
    return updated


def run_db_command(args: argparse.Namespace) -> Optional[int]:
    """Commands that are quick enough to run without a worker."""
    with DbManager(Cfg.DB_FILE) as db:
        if args.list_stigs:
            _emit({"ok": True, "stigs": [asdict(s) for s in db.get_stigs()]})
            return 0

        if args.list_assets:
            assets = []
            for asset in db.get_assets():
                entry = asdict(asset)
                entry["stigs"] = [s.id for s in db.get_stigs(asset)]
                assets.append(entry)
            _emit({"ok": True, "assets": assets})
            return 0

        if args.asset_stats:
            asset = _asset(db, args.asset_stats)
            _emit({"ok": True, "asset": asset.host_name, "stats": db.asset_stats(asset)})
            return 0

        if args.delete_asset:
            asset = _asset(db, args.delete_asset)
            ok = db.delete_asset(asset)
            _emit({"ok": ok, "asset": asset.host_name})
            return 0 if ok else 1

        if args.map_stig:
            asset = _asset(db, args.map_stig[0])
            stig = _stig(db, args.map_stig[1])
            ok = db.add_stig_to_asset(stig, asset)
            _emit({"ok": ok, "asset": asset.host_name, "stig": print_stig(stig)})
            return 0 if ok else 1

        if args.unmap_stig:
            asset = _asset(db, args.unmap_stig[0])
            stig = _stig(db, args.unmap_stig[1])
            ok = db.delete_stig_from_asset(stig, asset)
            _emit({"ok": ok, "asset": asset.host_name, "stig": print_stig(stig)})
            return 0 if ok else 1

        if args.set_status:
            asset_key, rule, status = args.set_status
            asset = _asset(db, asset_key)
            updated = set_status(db, asset, rule.strip(), status, args.details, args.comments)
            _emit({"ok": bool(updated), "status": San.status(status).ckl, "updated": updated})
            return 0 if updated else 1

        if args.delete_emass:
            db.delete_emass_import()
            _emit({"ok": True})
            return 0

        if args.reset_db:
            db.delete_db()
            _emit({"ok": True, "db": str(Cfg.DB_FILE)})
            return 0

        if args.cleanup_old:
            backups, logs = Cfg.cleanup_old()
            _emit({"ok": True, "backups_removed": backups, "logs_removed": logs})
            return 0

    return None


def select_worker(args: argparse.Namespace, parser: argparse.ArgumentParser) -> Optional[Worker]:
    db = Cfg.DB_FILE
    if args.update_ccis:
        return CCIAddWorker(args.cci_source, args.controls_source, db_path=db)
    if args.delete_ccis:
        return CCIDeleteWorker(db_path=db)
    if args.map_unmapped:
        return MapUnmappedWorker(db_path=db)
    if args.add_stigs:
        return STIGAddWorker(args.add_stigs, db_path=db)
    if args.delete_stigs:
        return STIGDeleteWorker(args.delete_stigs, db_path=db)
    if args.add_asset:
        asset = Asset(
            asset_type=args.asset_type,
            host_name=San.host(args.add_asset),
            host_ip=San.ip(args.ip),
            host_mac=San.mac(args.mac),
            host_fqdn=args.fqdn.strip(),
            tech_area=args.tech_area.strip(),
        )
        return AssetAddWorker(asset, args.stig, db_path=db)
    if args.import_ckls:
        return CKLImportWorker(args.import_ckls, db_path=db)
    if args.export_ckls:
        return CKLExportWorker(args.export_ckls, args.assets, db_path=db)
    if args.emass_report:
        return EMASSReportWorker(args.emass_report, db_path=db)
    if args.import_emass:
        return EMASSImportWorker(args.import_emass, db_path=db)
    if args.findings_report:
        return FindingsReportWorker(args.findings_report, db_path=db)
    if args.assets:
        parser.error("--assets requires --export-ckls")
    return None


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command-line arguments (None = sys.argv)

    Returns:
        Exit code (0 success, 1 failure, 2 partial failure, 130 interrupted)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    GLOBAL.reset()
    if args.db:
        Cfg.set_db(args.db)

    ok, err_list = Cfg.check()
    if not ok:
        for err in err_list:
            print(f"ERROR: {err}", file=sys.stderr)
        return 1

    LOG.set_verbose(args.verbose)
    Deps.warn_if_unsafe()

    try:
        worker = select_worker(args, parser)
        if worker is not None:
            return run_worker(worker)

        code = run_db_command(args)
        if code is not None:
            return code

        parser.print_help()
        return 0

    except KeyboardInterrupt:
        GLOBAL.shutdown.set()
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except STIGError as exc:
        LOG.e(f"{exc}")
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:
        LOG.e(f"Fatal error: {exc}", exc=True)
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        GLOBAL.cleanup()
        gc.collect()


if __name__ == "__main__":
    sys.exit(main())
