"""Database schema: CREATE TABLE statements and migration runner.

The schema version lives in the ``variables`` table under ``version``. Each
migration is a function ``_migrate_vN(conn)`` that runs the DDL for version
*N*; ``ensure_schema`` applies all pending migrations in order.
"""
from __future__ import annotations

import sqlite3

from stigqter.core.constants import DB_VERSION
from stigqter.core.logging import LOG

TABLES = (
    "CKLCheck",
    "AssetSTIG",
    "Asset",
    "STIGCheck",
    "STIG",
    "CCI",
    "Control",
    "Family",
    "variables",
)


def current_version(conn: sqlite3.Connection) -> int:
    """Schema version recorded in the database (0 for an empty file)."""
    exists = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'variables'"
    ).fetchone()
    if not exists:
        return 0
    row = conn.execute("SELECT value FROM variables WHERE name = 'version'").fetchone()
    try:
        return int(row["value"]) if row else 0
    except (TypeError, ValueError):
        return 0


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Create or upgrade the database schema to the latest version."""
    current = current_version(conn)

    migrations = {
        1: _migrate_v1,
    }

    for v in range(current + 1, DB_VERSION + 1):
        fn = migrations.get(v)
        if fn is None:
            raise RuntimeError(f"Missing migration function for schema version {v}")
        LOG.i(f"Migrating database schema to version {v}")
        conn.execute("BEGIN")
        try:
            fn(conn)
            if v == 1:
                conn.execute("INSERT INTO variables (name, value) VALUES ('version', ?)", [str(v)])
            else:
                conn.execute("UPDATE variables SET value = ? WHERE name = 'version'", [str(v)])
            conn.execute("COMMIT")
        except sqlite3.Error:
            conn.execute("ROLLBACK")
            raise


def drop_all(conn: sqlite3.Connection) -> None:
    """Drop every application table (children first)."""
    for table in TABLES:
        conn.execute(f"DROP TABLE IF EXISTS `{table}`")


# ── Migration v1: Initial schema ─────────────────────────────────────────────

def _migrate_v1(conn: sqlite3.Connection) -> None:
    """Initial schema: all tables."""
    for ddl in (
        """
        CREATE TABLE IF NOT EXISTS `Family` (
            `id`            INTEGER PRIMARY KEY AUTOINCREMENT,
            `Acronym`       TEXT UNIQUE,
            `Description`   TEXT
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS `Control` (
            `id`            INTEGER PRIMARY KEY AUTOINCREMENT,
            `FamilyId`      INTEGER NOT NULL,
            `number`        INTEGER NOT NULL,
            `enhancement`   INTEGER,
            `title`         TEXT,
            `description`   TEXT,
            FOREIGN KEY(`FamilyId`) REFERENCES `Family`(`id`)
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS `CCI` (
            `id`                INTEGER PRIMARY KEY AUTOINCREMENT,
            `ControlId`         INTEGER,
            `cci`               INTEGER,
            `definition`        TEXT,
            `isImport`          INTEGER NOT NULL DEFAULT 0,
            `importCompliance`  TEXT,
            `importDateTested`  TEXT,
            `importTestedBy`    TEXT,
            `importTestResults` TEXT,
            FOREIGN KEY(`ControlId`) REFERENCES `Control`(`id`)
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS `variables` (
            `name`  TEXT,
            `value` TEXT
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS `STIG` (
            `id`            INTEGER PRIMARY KEY AUTOINCREMENT,
            `title`         TEXT,
            `description`   TEXT,
            `release`       TEXT,
            `version`       INTEGER,
            `benchmarkId`   TEXT,
            `fileName`      TEXT
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS `STIGCheck` (
            `id`                        INTEGER PRIMARY KEY AUTOINCREMENT,
            `STIGId`                    INTEGER,
            `CCIId`                     INTEGER,
            `rule`                      TEXT,
            `vulnNum`                   TEXT,
            `groupTitle`                TEXT,
            `ruleVersion`               TEXT,
            `severity`                  INTEGER,
            `weight`                    REAL,
            `title`                     TEXT,
            `vulnDiscussion`            TEXT,
            `falsePositives`            TEXT,
            `falseNegatives`            TEXT,
            `fix`                       TEXT,
            `check`                     TEXT,
            `documentable`              INTEGER,
            `mitigations`               TEXT,
            `severityOverrideGuidance`  TEXT,
            `checkContentRef`           TEXT,
            `potentialImpact`           TEXT,
            `thirdPartyTools`           TEXT,
            `mitigationControl`         TEXT,
            `responsibility`            TEXT,
            `IAControls`                TEXT,
            `targetKey`                 TEXT,
            FOREIGN KEY(`STIGId`) REFERENCES `STIG`(`id`),
            FOREIGN KEY(`CCIId`) REFERENCES `CCI`(`id`)
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS `Asset` (
            `id`            INTEGER PRIMARY KEY AUTOINCREMENT,
            `assetType`     TEXT,
            `hostName`      TEXT UNIQUE,
            `hostIP`        TEXT,
            `hostMAC`       TEXT,
            `hostFQDN`      TEXT,
            `techArea`      TEXT,
            `targetKey`     TEXT,
            `webOrDatabase` INTEGER,
            `webDBSite`     TEXT,
            `webDBInstance` TEXT
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS `AssetSTIG` (
            `id`        INTEGER PRIMARY KEY AUTOINCREMENT,
            `AssetId`   INTEGER,
            `STIGId`    INTEGER,
            FOREIGN KEY(`AssetId`) REFERENCES `Asset`(`id`),
            FOREIGN KEY(`STIGId`) REFERENCES `STIG`(`id`)
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS `CKLCheck` (
            `id`                    INTEGER PRIMARY KEY AUTOINCREMENT,
            `AssetId`               INTEGER,
            `STIGCheckId`           INTEGER,
            `status`                INTEGER,
            `findingDetails`        TEXT,
            `comments`              TEXT,
            `severityOverride`      INTEGER,
            `severityJustification` TEXT,
            FOREIGN KEY(`STIGCheckId`) REFERENCES `STIGCheck`(`id`),
            FOREIGN KEY(`AssetId`) REFERENCES `Asset`(`id`)
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_cci_cci ON `CCI`(`cci`)",
        "CREATE INDEX IF NOT EXISTS idx_stigcheck_stig ON `STIGCheck`(`STIGId`)",
        "CREATE INDEX IF NOT EXISTS idx_cklcheck_asset ON `CKLCheck`(`AssetId`, `STIGCheckId`)",
    ):
        conn.execute(ddl)
