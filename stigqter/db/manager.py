"""
STIGQter persistence layer.

``DbManager`` wraps the SQLite database holding Families, Controls, CCIs,
STIGs, STIGChecks, Assets and CKLChecks.

Connections:
    One connection per thread, opened lazily. ``isolation_level=None`` turns
    off Python's implicit transactions, so every write commits on its own
    unless a delayed commit (explicit ``BEGIN``/``COMMIT``) is active on that
    thread.

Errors:
    SQLite failures raise DatabaseError. Business-rule refusals (duplicate
    host name, STIG still mapped to an asset...) log a warning and return
    False or None.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, Iterable, List, Optional, Sequence, Tuple, Union

from stigqter.core.config import Cfg
from stigqter.core.constants import DEFAULT_CCI, Severity, Status
from stigqter.core.logging import LOG
from stigqter.db.models import (
    CCI,
    STIG,
    Asset,
    CKLCheck,
    Control,
    Family,
    STIGCheck,
    print_asset,
    print_cci,
    print_stig,
    print_stig_check,
)
from stigqter.db.schema import drop_all, ensure_schema
from stigqter.exceptions import DatabaseError
from stigqter.xml.sanitizer import San

_STIG_CHECK_COLUMNS = (
    "STIGId", "CCIId", "rule", "vulnNum", "groupTitle", "ruleVersion", "severity",
    "weight", "title", "vulnDiscussion", "falsePositives", "falseNegatives", "fix",
    "check", "documentable", "mitigations", "severityOverrideGuidance",
    "checkContentRef", "potentialImpact", "thirdPartyTools", "mitigationControl",
    "responsibility", "IAControls", "targetKey",
)


def parse_control(text: str) -> Optional[Tuple[str, int, Optional[int]]]:
    """Split ``AC-2 (3)`` into ``("AC", 2, 3)``.

    Anything after a second space is ignored. An enhancement that is not a
    positive integer is dropped. Returns None when the string cannot hold a
    family and a number.
    """
    control = (text or "").strip()
    if len(control) < 4:
        return None

    first = control.find(" ")
    if first > 0:
        second = control.find(" ", first + 1)
        if second > 0:
            control = control[: second + 1].strip()

    family = control[:2]
    rest = control[3:]
    enhancement: Optional[int] = None
    if "(" in rest:
        paren = rest.find("(")
        raw = rest[paren + 1 : -1]
        rest = rest[:paren]
        try:
            enhancement = int(raw.strip())
        except ValueError:
            enhancement = None
        if enhancement is not None and enhancement <= 0:
            enhancement = None

    try:
        number = int(rest.strip())
    except ValueError:
        return None
    if number <= 0:
        return None
    return family, number, enhancement


class DbManager:
    """
    Data access layer for the STIGQter database.

    Usage:
        db = DbManager()              # Cfg.DB_FILE
        db = DbManager("other.db")
        with db.delayed():
            for cci in ccis:
                db.add_cci(cci)

    Thread Safety:
        Each thread gets its own connection; a DbManager may be shared but
        workers normally open their own.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        self.path = Path(path).expanduser() if path else Path(Cfg.DB_FILE)
        self._local = threading.local()
        self._lock = threading.Lock()
        self._conns: List[sqlite3.Connection] = []
        self._schema_ready = False
        self._conn()

    # ──────────────────────────────────────────────────────────────────────
    # CONNECTIONS & TRANSACTIONS
    # ──────────────────────────────────────────────────────────────────────

    def _conn(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            return conn

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.path), timeout=30, isolation_level=None, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA busy_timeout=5000")
        except (sqlite3.Error, OSError) as exc:
            raise DatabaseError(f"Cannot open database: {exc}", {"db": str(self.path)}) from exc

        with self._lock:
            self._conns.append(conn)
            if not self._schema_ready:
                try:
                    ensure_schema(conn)
                except sqlite3.Error as exc:
                    raise DatabaseError(f"Schema setup failed: {exc}", {"db": str(self.path)}) from exc
                self._schema_ready = True

        self._local.conn = conn
        self._local.delayed = False
        LOG.d(f"Opened database connection to {self.path} on {threading.current_thread().name}")
        return conn

    def _exec(self, sql: str, params: Union[Sequence[Any], Dict[str, Any]] = ()) -> sqlite3.Cursor:
        try:
            return self._conn().execute(sql, params)
        except sqlite3.Error as exc:
            raise DatabaseError(f"Query failed: {exc}", {"sql": sql.split()[0] if sql else ""}) from exc

    def _all(self, sql: str, params: Union[Sequence[Any], Dict[str, Any]] = ()) -> List[sqlite3.Row]:
        return self._exec(sql, params).fetchall()

    def _one(self, sql: str, params: Union[Sequence[Any], Dict[str, Any]] = ()) -> Optional[sqlite3.Row]:
        return self._exec(sql, params).fetchone()

    @property
    def is_delayed(self) -> bool:
        self._conn()
        return bool(self._local.delayed)

    def delay_commit(self, delay: bool) -> None:
        """Start (True) or finish (False) a delayed commit on this thread.

        While delayed, journaling and synchronous writes are off and all
        writes share one transaction.
        """
        conn = self._conn()
        try:
            if delay:
                if self._local.delayed:
                    return
                conn.execute("PRAGMA journal_mode = OFF")
                conn.execute("PRAGMA synchronous = OFF")
                conn.execute("BEGIN")
                self._local.delayed = True
            else:
                if conn.in_transaction:
                    conn.execute("COMMIT")
                if self._local.delayed:
                    conn.execute("PRAGMA journal_mode = DELETE")
                    conn.execute("PRAGMA synchronous = FULL")
                self._local.delayed = False
        except sqlite3.Error as exc:
            raise DatabaseError(f"Delayed commit failed: {exc}", {"db": str(self.path)}) from exc

    @contextmanager
    def delayed(self) -> Generator["DbManager", None, None]:
        """Run the block under a delayed commit (nested use is a no-op)."""
        if self.is_delayed:
            yield self
            return
        self.delay_commit(True)
        try:
            yield self
        finally:
            self.delay_commit(False)

    @contextmanager
    def _transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Group writes; joins the delayed commit when one is active."""
        conn = self._conn()
        if self._local.delayed or conn.in_transaction:
            yield conn
            return
        try:
            conn.execute("BEGIN")
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as exc:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise DatabaseError(f"Transaction failed: {exc}", {"db": str(self.path)}) from exc
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise

    def close(self) -> None:
        """Commit pending delayed work and close every connection."""
        conn = getattr(self._local, "conn", None)
        if conn is not None and self._local.delayed:
            self.delay_commit(False)
        with self._lock:
            for c in self._conns:
                try:
                    if c.in_transaction:
                        c.execute("COMMIT")
                    c.close()
                except sqlite3.Error as exc:
                    LOG.w(f"Closing database connection failed: {exc}")
            self._conns.clear()
        self._local = threading.local()

    def __enter__(self) -> "DbManager":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ──────────────────────────────────────────────────────────────────────
    # ADD
    # ──────────────────────────────────────────────────────────────────────

    def add_asset(self, asset: Asset) -> bool:
        """Store a new asset and set ``asset.id``; host names must be unique."""
        if self.get_asset(asset.host_name) is not None:
            LOG.w(f"Asset {print_asset(asset)} already exists")
            return False
        cur = self._exec(
            "INSERT INTO Asset (assetType, hostName, hostIP, hostMAC, hostFQDN, techArea, targetKey, "
            "webOrDatabase, webDBSite, webDBInstance) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                asset.asset_type,
                asset.host_name,
                asset.host_ip,
                asset.host_mac,
                asset.host_fqdn,
                asset.tech_area,
                asset.target_key,
                int(asset.web_or_database),
                asset.web_db_site,
                asset.web_db_instance,
            ],
        )
        asset.id = cur.lastrowid
        LOG.d(f"Added asset {print_asset(asset)} ({asset.id})")
        return True

    def add_cci(self, cci: CCI) -> bool:
        """Store a new CCI and set ``cci.id``; CCI numbers must be unique."""
        if self._one("SELECT id FROM CCI WHERE cci = ?", [cci.cci]) is not None:
            LOG.w(f"{print_cci(cci)} already exists")
            return False
        cur = self._exec(
            "INSERT INTO CCI (ControlId, cci, definition, isImport, importCompliance, importDateTested, "
            "importTestedBy, importTestResults) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            [
                cci.control_id,
                cci.cci,
                cci.definition,
                int(cci.is_import),
                cci.import_compliance,
                cci.import_date_tested,
                cci.import_tested_by,
                cci.import_test_results,
            ],
        )
        cci.id = cur.lastrowid
        return True

    def add_control(self, control: str, title: str = "", description: str = "") -> bool:
        """Store a control given as ``FAMILY-NUMBER`` or ``FAMILY-NUMBER (ENH)``.

        The family must already exist.
        """
        parsed = parse_control(control)
        if parsed is None:
            LOG.w(f'Received bad control "{control}"')
            return False
        acronym, number, enhancement = parsed

        family = self.get_family(acronym)
        if family is None:
            LOG.w(f"The family {acronym} does not exist in the database")
            return False

        self._exec(
            "INSERT INTO Control (FamilyId, number, enhancement, title, description) VALUES (?, ?, ?, ?, ?)",
            [family.id, number, enhancement, title, description],
        )
        return True

    def add_family(self, acronym: str, description: str) -> bool:
        acronym = (acronym or "").strip().upper()
        if len(acronym) != 2:
            LOG.w(f'Received bad family acronym "{acronym}"')
            return False
        if self.get_family(acronym) is not None:
            LOG.w(f"Family {acronym} already exists")
            return False
        self._exec("INSERT INTO Family (Acronym, Description) VALUES (?, ?)", [acronym, San.text(description)])
        return True

    def add_stig(self, stig: STIG, checks: Iterable[STIGCheck], stig_exists: bool = False) -> bool:
        """Store a STIG and its checks.

        An existing STIG with the same title, version and release is refused
        unless ``stig_exists`` is set, in which case the checks are appended
        to it. Returns True only when every check was stored.
        """
        if stig.id <= 0:
            existing = self.get_stig(stig.title, stig.version, stig.release)
            if existing is not None:
                if not stig_exists:
                    LOG.w(f"The STIG {print_stig(stig)} already exists in the database")
                    return False
                stig.id = existing.id
            else:
                cur = self._exec(
                    "INSERT INTO STIG (title, description, release, version, benchmarkId, fileName) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    [stig.title, stig.description, stig.release, stig.version, stig.benchmark_id, stig.file_name],
                )
                stig.id = cur.lastrowid

        if stig.id is None or stig.id <= 0:
            LOG.w(f"The new STIG {print_stig(stig)} could not be added to the database")
            return False

        placeholders = ", ".join("?" for _ in _STIG_CHECK_COLUMNS)
        columns = ", ".join(f"`{c}`" for c in _STIG_CHECK_COLUMNS)
        sql = f"INSERT INTO STIGCheck ({columns}) VALUES ({placeholders})"
        conn = self._conn()
        all_ok = True

        with self.delayed():
            for check in checks:
                check.stig_id = stig.id
                try:
                    cur = conn.execute(sql, _stig_check_params(check))
                    check.id = cur.lastrowid
                except sqlite3.Error as exc:
                    all_ok = False
                    LOG.w(f"The STIGCheck {print_stig_check(check)} could not be added to {print_stig(stig)}: {exc}")

        return all_ok

    def add_stig_to_asset(self, stig: STIG, asset: Asset) -> bool:
        """Map a STIG to an asset, creating a Not Reviewed CKLCheck per rule."""
        stig_row = self.get_stig(stig.id) if stig.id > 0 else self.get_stig(stig.title, stig.version, stig.release)
        asset_row = self.get_asset(asset.id) if asset.id > 0 else self.get_asset(asset.host_name)
        if stig_row is None:
            LOG.w(f"The STIG {print_stig(stig)} does not exist in the database")
            return False
        if asset_row is None:
            LOG.w(f"The asset {print_asset(asset)} does not exist in the database")
            return False
        if self._one(
            "SELECT id FROM AssetSTIG WHERE AssetId = ? AND STIGId = ?", [asset_row.id, stig_row.id]
        ) is not None:
            LOG.w(f"The STIG {print_stig(stig_row)} is already mapped to {print_asset(asset_row)}")
            return False

        with self._transaction() as conn:
            conn.execute("INSERT INTO AssetSTIG (AssetId, STIGId) VALUES (?, ?)", [asset_row.id, stig_row.id])
            conn.execute(
                "INSERT INTO CKLCheck (AssetId, STIGCheckId, status, findingDetails, comments, "
                "severityOverride, severityJustification) "
                "SELECT ?, id, ?, '', '', ?, '' FROM STIGCheck WHERE STIGId = ?",
                [asset_row.id, int(Status.NOT_REVIEWED), int(Severity.NONE), stig_row.id],
            )
        return True

    # ──────────────────────────────────────────────────────────────────────
    # DELETE
    # ──────────────────────────────────────────────────────────────────────

    def delete_asset(self, asset: Union[Asset, int]) -> bool:
        """Delete an asset; refused while STIGs are still mapped to it."""
        asset_id = asset.id if isinstance(asset, Asset) else int(asset)
        stored = self.get_asset(asset_id)
        if stored is None:
            LOG.w(f"Asset {asset_id} does not exist")
            return False
        stigs = self.get_stigs(stored)
        if stigs:
            LOG.w(
                f"Unable to delete {print_asset(stored)}: STIGs still mapped: "
                + ", ".join(print_stig(s) for s in stigs)
            )
            return False
        self._exec("DELETE FROM Asset WHERE id = ?", [asset_id])
        return True

    def delete_ccis(self) -> bool:
        with self._transaction() as conn:
            conn.execute("DELETE FROM Family")
            conn.execute("DELETE FROM Control")
            conn.execute("DELETE FROM CCI")
        LOG.i("Removed all families, controls and CCIs")
        return True

    def delete_stig(self, stig: Union[STIG, int]) -> bool:
        """Delete a STIG and its checks; refused while any asset uses it."""
        stig_id = stig.id if isinstance(stig, STIG) else int(stig)
        stored = self.get_stig(stig_id)
        if stored is None:
            LOG.w(f"STIG {stig_id} does not exist")
            return False
        assets = self.get_assets(stored)
        if assets:
            LOG.w(
                f"Unable to delete {print_stig(stored)}: used by "
                + ", ".join(print_asset(a) for a in assets)
            )
            return False
        with self._transaction() as conn:
            conn.execute("DELETE FROM STIGCheck WHERE STIGId = ?", [stig_id])
            conn.execute("DELETE FROM STIG WHERE id = ?", [stig_id])
        return True

    def delete_stig_from_asset(self, stig: STIG, asset: Asset) -> bool:
        with self._transaction() as conn:
            conn.execute(
                "DELETE FROM CKLCheck WHERE AssetId = ? AND STIGCheckId IN "
                "(SELECT id FROM STIGCheck WHERE STIGId = ?)",
                [asset.id, stig.id],
            )
            cur = conn.execute("DELETE FROM AssetSTIG WHERE AssetId = ? AND STIGId = ?", [asset.id, stig.id])
        if cur.rowcount == 0:
            LOG.w(f"{print_stig(stig)} was not mapped to {print_asset(asset)}")
            return False
        return True

    def delete_emass_import(self) -> None:
        self._exec(
            "UPDATE CCI SET isImport = 0, importCompliance = NULL, importDateTested = NULL, "
            "importTestedBy = NULL, importTestResults = NULL"
        )

    def delete_db(self) -> None:
        """Drop every table and recreate an empty schema."""
        if self.is_delayed:
            self.delay_commit(False)
        conn = self._conn()
        try:
            drop_all(conn)
            ensure_schema(conn)
        except sqlite3.Error as exc:
            raise DatabaseError(f"Database reset failed: {exc}", {"db": str(self.path)}) from exc
        LOG.i(f"Database {self.path} reset")

    # ──────────────────────────────────────────────────────────────────────
    # ASSETS
    # ──────────────────────────────────────────────────────────────────────

    def get_asset(self, key: Union[int, str]) -> Optional[Asset]:
        """Asset by id or host name."""
        if isinstance(key, int):
            row = self._one("SELECT * FROM Asset WHERE id = ?", [key])
        else:
            row = self._one("SELECT * FROM Asset WHERE hostName = ?", [key])
        return Asset.from_row(row) if row else None

    def get_assets(self, stig: Optional[STIG] = None) -> List[Asset]:
        if stig is None:
            rows = self._all("SELECT * FROM Asset ORDER BY LOWER(hostName), hostName")
        else:
            rows = self._all(
                "SELECT * FROM Asset WHERE id IN (SELECT AssetId FROM AssetSTIG WHERE STIGId = ?) "
                "ORDER BY LOWER(hostName), hostName",
                [stig.id],
            )
        return [Asset.from_row(r) for r in rows]

    def asset_stats(self, asset: Asset) -> Dict[str, int]:
        """CKLCheck counts per status for an asset."""
        stats = {"total": 0, "open": 0, "not_a_finding": 0, "not_applicable": 0, "not_reviewed": 0}
        keys = {
            Status.OPEN: "open",
            Status.NOT_A_FINDING: "not_a_finding",
            Status.NOT_APPLICABLE: "not_applicable",
            Status.NOT_REVIEWED: "not_reviewed",
        }
        for row in self._all(
            "SELECT status, COUNT(*) AS n FROM CKLCheck WHERE AssetId = ? GROUP BY status", [asset.id]
        ):
            try:
                stats[keys[Status(row["status"] or 0)]] += row["n"]
            except ValueError:
                LOG.w(f"Unknown status {row['status']} on asset {print_asset(asset)}")
            stats["total"] += row["n"]
        return stats

    # ──────────────────────────────────────────────────────────────────────
    # CCIs / CONTROLS / FAMILIES
    # ──────────────────────────────────────────────────────────────────────

    def get_cci(self, cci_id: int) -> Optional[CCI]:
        row = self._one("SELECT * FROM CCI WHERE id = ?", [cci_id])
        return CCI.from_row(row) if row else None

    def get_ccis(self) -> List[CCI]:
        return [CCI.from_row(r) for r in self._all("SELECT * FROM CCI ORDER BY cci")]

    def get_cci_by_cci(self, number: int, stig: Optional[STIG] = None) -> Optional[CCI]:
        """CCI by number; unknown numbers fall back to CCI-000366."""
        row = self._one("SELECT * FROM CCI WHERE cci = ?", [number])
        if row:
            return CCI.from_row(row)

        source = print_stig(stig) if stig else "an unknown STIG"
        LOG.w(
            f"CCI-{number:06d} from {source} does not exist in NIST 800-53r4. "
            f"Remapping the check to CCI-{DEFAULT_CCI:06d}; report the broken mapping to the STIG author."
        )
        row = self._one("SELECT * FROM CCI WHERE cci = ?", [DEFAULT_CCI])
        return CCI.from_row(row) if row else None

    def get_control(self, key: Union[int, str]) -> Optional[Control]:
        """Control by id or by ``AC-2``/``AC-2 (3)`` text."""
        if isinstance(key, int):
            row = self._one("SELECT * FROM Control WHERE id = ?", [key])
            return Control.from_row(row) if row else None

        parsed = parse_control(key)
        if parsed is None:
            return None
        acronym, number, enhancement = parsed
        family = self.get_family(acronym)
        if family is None:
            return None
        if enhancement is None:
            row = self._one(
                "SELECT * FROM Control WHERE FamilyId = ? AND number = ? AND enhancement IS NULL",
                [family.id, number],
            )
        else:
            row = self._one(
                "SELECT * FROM Control WHERE FamilyId = ? AND number = ? AND enhancement = ?",
                [family.id, number, enhancement],
            )
        return Control.from_row(row) if row else None

    def get_controls(self) -> List[Control]:
        rows = self._all(
            "SELECT c.* FROM Control c JOIN Family f ON f.id = c.FamilyId "
            "ORDER BY f.Acronym, c.number, c.enhancement"
        )
        return [Control.from_row(r) for r in rows]

    def get_family(self, key: Union[int, str]) -> Optional[Family]:
        if isinstance(key, int):
            row = self._one("SELECT * FROM Family WHERE id = ?", [key])
        else:
            row = self._one("SELECT * FROM Family WHERE Acronym = ?", [key.strip().upper()])
        return Family.from_row(row) if row else None

    def get_families(self) -> List[Family]:
        return [Family.from_row(r) for r in self._all("SELECT * FROM Family ORDER BY Acronym")]

    def import_cci(self, cci: CCI) -> bool:
        """Store eMASS import fields on the CCI (matched by id, else number)."""
        params = [
            cci.import_compliance,
            cci.import_date_tested,
            cci.import_tested_by,
            cci.import_test_results,
        ]
        if cci.id > 0:
            cur = self._exec(
                "UPDATE CCI SET isImport = 1, importCompliance = ?, importDateTested = ?, "
                "importTestedBy = ?, importTestResults = ? WHERE id = ?",
                params + [cci.id],
            )
        else:
            cur = self._exec(
                "UPDATE CCI SET isImport = 1, importCompliance = ?, importDateTested = ?, "
                "importTestedBy = ?, importTestResults = ? WHERE cci = ?",
                params + [cci.cci],
            )
        cci.is_import = cur.rowcount > 0
        return cci.is_import

    def is_emass_import(self) -> bool:
        return self._one("SELECT 1 FROM CCI WHERE isImport = 1 LIMIT 1") is not None

    def map_unmapped(self) -> int:
        """Point STIGChecks whose CCI is missing at CCI-000366."""
        fallback = self._one("SELECT id FROM CCI WHERE cci = ?", [DEFAULT_CCI])
        if fallback is None:
            LOG.w(f"CCI-{DEFAULT_CCI:06d} is not in the database; import CCIs first")
            return 0
        cur = self._exec(
            "UPDATE STIGCheck SET CCIId = ? WHERE CCIId IS NULL OR CCIId NOT IN (SELECT id FROM CCI)",
            [fallback["id"]],
        )
        if cur.rowcount:
            LOG.i(f"Remapped {cur.rowcount} STIG check(s) to CCI-{DEFAULT_CCI:06d}")
        return cur.rowcount

    # ──────────────────────────────────────────────────────────────────────
    # CHECKLISTS
    # ──────────────────────────────────────────────────────────────────────

    def get_ckl_check(self, key: Union[int, Asset], stig_check: Optional[STIGCheck] = None) -> Optional[CKLCheck]:
        """CKLCheck by id, or by (asset, STIG check)."""
        if isinstance(key, Asset):
            if stig_check is None:
                raise ValueError("stig_check is required when looking up by asset")
            row = self._one(
                "SELECT * FROM CKLCheck WHERE AssetId = ? AND STIGCheckId = ?", [key.id, stig_check.id]
            )
        else:
            row = self._one("SELECT * FROM CKLCheck WHERE id = ?", [key])
        return CKLCheck.from_row(row) if row else None

    def get_ckl_checks(self, asset: Optional[Asset] = None, stig: Optional[STIG] = None) -> List[CKLCheck]:
        clauses: List[str] = []
        params: List[Any] = []
        if asset is not None:
            clauses.append("AssetId = ?")
            params.append(asset.id)
        if stig is not None:
            clauses.append("STIGCheckId IN (SELECT id FROM STIGCheck WHERE STIGId = ?)")
            params.append(stig.id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._all(f"SELECT * FROM CKLCheck {where} ORDER BY AssetId, STIGCheckId", params)
        return [CKLCheck.from_row(r) for r in rows]

    def update_ckl_check(self, check: CKLCheck) -> bool:
        """Save status, details, comments and override of a CKLCheck."""
        params = [
            int(check.status),
            check.finding_details,
            check.comments,
            int(check.severity_override),
            check.severity_justification,
        ]
        sql = (
            "UPDATE CKLCheck SET status = ?, findingDetails = ?, comments = ?, "
            "severityOverride = ?, severityJustification = ? "
        )
        if check.id > 0:
            cur = self._exec(sql + "WHERE id = ?", params + [check.id])
        else:
            cur = self._exec(sql + "WHERE AssetId = ? AND STIGCheckId = ?", params + [check.asset_id, check.stig_check_id])
        return cur.rowcount > 0

    # ──────────────────────────────────────────────────────────────────────
    # STIGs
    # ──────────────────────────────────────────────────────────────────────

    def get_stig(self, key: Union[int, str], version: Optional[int] = None, release: Optional[str] = None) -> Optional[STIG]:
        """STIG by id, or by (title, version, release)."""
        if isinstance(key, int):
            row = self._one("SELECT * FROM STIG WHERE id = ?", [key])
        else:
            row = self._one(
                "SELECT * FROM STIG WHERE title = ? AND version = ? AND release = ?",
                [key, version, release],
            )
        return STIG.from_row(row) if row else None

    def get_stigs(self, asset: Optional[Asset] = None) -> List[STIG]:
        if asset is None:
            rows = self._all("SELECT * FROM STIG ORDER BY LOWER(title), title")
        else:
            rows = self._all(
                "SELECT * FROM STIG WHERE id IN (SELECT STIGId FROM AssetSTIG WHERE AssetId = ?) "
                "ORDER BY LOWER(title), title",
                [asset.id],
            )
        return [STIG.from_row(r) for r in rows]

    def get_stig_check(self, key: Union[int, STIG], rule: Optional[str] = None) -> Optional[STIGCheck]:
        """STIGCheck by id, or by (STIG, rule id)."""
        if isinstance(key, STIG):
            row = self._one("SELECT * FROM STIGCheck WHERE STIGId = ? AND rule = ?", [key.id, rule])
        else:
            row = self._one("SELECT * FROM STIGCheck WHERE id = ?", [key])
        return STIGCheck.from_row(row) if row else None

    def get_stig_checks(self, stig: Optional[STIG] = None) -> List[STIGCheck]:
        if stig is None:
            rows = self._all("SELECT * FROM STIGCheck ORDER BY STIGId, id")
        else:
            rows = self._all("SELECT * FROM STIGCheck WHERE STIGId = ? ORDER BY id", [stig.id])
        return [STIGCheck.from_row(r) for r in rows]

    # ──────────────────────────────────────────────────────────────────────
    # SETTINGS
    # ──────────────────────────────────────────────────────────────────────

    def get_variable(self, name: str) -> Optional[str]:
        row = self._one("SELECT value FROM variables WHERE name = ?", [name])
        return row["value"] if row else None

    def update_variable(self, name: str, value: str) -> None:
        cur = self._exec("UPDATE variables SET value = ? WHERE name = ?", [value, name])
        if cur.rowcount == 0:
            self._exec("INSERT INTO variables (name, value) VALUES (?, ?)", [name, value])


def _stig_check_params(check: STIGCheck) -> List[Any]:
    return [
        check.stig_id,
        check.cci_id,
        check.rule,
        check.vuln_num,
        check.group_title,
        check.rule_version,
        int(check.severity),
        check.weight,
        check.title,
        check.vuln_discussion,
        check.false_positives,
        check.false_negatives,
        check.fix,
        check.check,
        int(check.documentable),
        check.mitigations,
        check.severity_override_guidance,
        check.check_content_ref,
        check.potential_impact,
        check.third_party_tools,
        check.mitigation_control,
        check.responsibility,
        check.ia_controls,
        check.target_key,
    ]
