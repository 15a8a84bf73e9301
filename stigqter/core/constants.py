"""STIGQter constants module.

This module defines application constants, enumerations and the fixed
reference data (privacy families and controls) loaded with the CCI index.
"""

from __future__ import annotations

import platform
from enum import IntEnum
from typing import FrozenSet, Tuple


# ──────────────────────────────────────────────────────────────────────────────
# VERSION INFORMATION
# ──────────────────────────────────────────────────────────────────────────────

VERSION = "1.0.0"
BUILD_DATE = "2026-10-18"
APP_NAME = "STIGQter"
STIG_VIEWER_VERSION = "2.18"
DB_VERSION = 1


# ──────────────────────────────────────────────────────────────────────────────
# PLATFORM DETECTION
# ──────────────────────────────────────────────────────────────────────────────

IS_WINDOWS = platform.system() == "Windows"


# ──────────────────────────────────────────────────────────────────────────────
# FILE OPERATION CONSTANTS
# ──────────────────────────────────────────────────────────────────────────────

LARGE_FILE_THRESHOLD = 50 * 1024 * 1024  # 50MB
MAX_RETRIES = 3
RETRY_DELAY = 0.5
MAX_XML_SIZE = 500 * 1024 * 1024
MAX_FILE_SIZE = 500 * 1024 * 1024
MAX_ZIP_DEPTH = 3  # STIG library zips nest benchmark zips
KEEP_BACKUPS = 30
KEEP_LOGS = 15
MAX_FINDING_LENGTH = 65_000
MAX_COMMENT_LENGTH = 32_000


# ──────────────────────────────────────────────────────────────────────────────
# CHARACTER ENCODINGS
# ──────────────────────────────────────────────────────────────────────────────

ENCODINGS = [
    "utf-8",
    "utf-8-sig",
    "utf-16",
    "utf-16-le",
    "utf-16-be",
    "latin-1",
    "cp1252",
    "iso-8859-1",
    "ascii",
]


# ──────────────────────────────────────────────────────────────────────────────
# NETWORK SOURCES
# ──────────────────────────────────────────────────────────────────────────────

CCI_LIST_URL = "https://dl.dod.cyber.mil/wp-content/uploads/stigs/zip/u_cci_list.zip"
NIST_CONTROLS_URL = "https://nvd.nist.gov/static/feeds/xml/sp80053/rev4/800-53-controls.xml"
HTTP_TIMEOUT = 60
NIST_REVISION = "4"

# CCI that broken STIG mappings fall back to
DEFAULT_CCI = 366


# ──────────────────────────────────────────────────────────────────────────────
# ENUMERATIONS
# ──────────────────────────────────────────────────────────────────────────────


class Status(IntEnum):
    """Checklist status of a single check for a single asset.

    Stored as an integer in the database; ``ckl`` gives the string STIG
    Viewer writes in a checklist.
    """

    NOT_REVIEWED = 0
    OPEN = 1
    NOT_A_FINDING = 2
    NOT_APPLICABLE = 3

    @property
    def ckl(self) -> str:
        return _STATUS_CKL[self]

    @classmethod
    def from_string(cls, value: str) -> "Status":
        """Parse a CKL or display status string.

        Unknown and empty values map to NOT_REVIEWED.
        """
        key = (value or "").strip().lower().replace(" ", "").replace("_", "")
        return _STATUS_LOOKUP.get(key, cls.NOT_REVIEWED)

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check if a CKL status string is valid."""
        return value in cls.all_values()

    @classmethod
    def all_values(cls) -> FrozenSet[str]:
        """Return all valid CKL status strings."""
        return frozenset(_STATUS_CKL.values())


_STATUS_CKL = {
    Status.NOT_REVIEWED: "Not_Reviewed",
    Status.OPEN: "Open",
    Status.NOT_A_FINDING: "NotAFinding",
    Status.NOT_APPLICABLE: "Not_Applicable",
}

_STATUS_LOOKUP = {
    "notreviewed": Status.NOT_REVIEWED,
    "open": Status.OPEN,
    "notafinding": Status.NOT_A_FINDING,
    "notapplicable": Status.NOT_APPLICABLE,
}


class Severity(IntEnum):
    """STIG severity levels (CAT I/II/III).

    NONE marks "no override" on a checklist entry.
    - HIGH = CAT I
    - MEDIUM = CAT II
    - LOW = CAT III
    """

    NONE = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def ckl(self) -> str:
        return "" if self is Severity.NONE else self.name.lower()

    @property
    def cat(self) -> str:
        return {Severity.HIGH: "CAT I", Severity.MEDIUM: "CAT II", Severity.LOW: "CAT III"}.get(self, "")

    @classmethod
    def from_string(cls, value: str) -> "Severity":
        """Parse a severity string (``high``, ``CAT II``...); unknown → NONE."""
        key = (value or "").strip().lower()
        if key in ("high", "cat i", "cati"):
            return cls.HIGH
        if key in ("medium", "cat ii", "catii"):
            return cls.MEDIUM
        if key in ("low", "cat iii", "catiii"):
            return cls.LOW
        return cls.NONE

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check if a severity string is a valid STIG severity."""
        return value in cls.all_values()

    @classmethod
    def all_values(cls) -> FrozenSet[str]:
        """Return valid STIG severity strings (``none`` excluded)."""
        return frozenset(m.ckl for m in cls if m is not cls.NONE)


# ──────────────────────────────────────────────────────────────────────────────
# NIST 800-53 REV 4 PRIVACY APPENDIX (Appendix J)
# ──────────────────────────────────────────────────────────────────────────────

PRIVACY_FAMILIES: Tuple[Tuple[str, str], ...] = (
    ("AP", "Authority and Purpose"),
    ("AR", "Accountability, Audit, and Risk Management"),
    ("DI", "Data Quality and Integrity"),
    ("DM", "Data Minimization and Retention"),
    ("IP", "Individual Participation and Redress"),
    ("SE", "Security"),
    ("TR", "Transparency"),
    ("UL", "Use Limitation"),
)

PRIVACY_CONTROLS: Tuple[Tuple[str, str], ...] = (
    ("AP-1", "AUTHORITY TO COLLECT"),
    ("AP-2", "PURPOSE SPECIFICATION"),
    ("AR-1", "GOVERNANCE AND PRIVACY PROGRAM"),
    ("AR-2", "PRIVACY IMPACT AND RISK ASSESSMENT"),
    ("AR-3", "PRIVACY REQUIREMENTS FOR CONTRACTORS AND SERVICE PROVIDERS"),
    ("AR-4", "PRIVACY MONITORING AND AUDITING"),
    ("AR-5", "PRIVACY AWARENESS AND TRAINING"),
    ("AR-6", "PRIVACY REPORTING"),
    ("AR-7", "PRIVACY-ENHANCED SYSTEM DESIGN AND DEVELOPMENT"),
    ("AR-8", "ACCOUNTING OF DISCLOSURES"),
    ("DI-1", "DATA QUALITY"),
    ("DI-1 (1)", "DATA QUALITY | VALIDATE PII"),
    ("DI-1 (2)", "DATA QUALITY | RE-VALIDATE PII"),
    ("DI-2", "DATA INTEGRITY AND DATA INTEGRITY BOARD"),
    ("DI-2 (1)", "DATA INTEGRITY AND DATA INTEGRITY BOARD | PUBLISH AREEMENTS ON WEBSITE"),
    ("DM-1", "MINIMIZATION OF PERSONALLY IDENTIFIABLE INFORMATION"),
    ("DM-1 (1)", "MINIMIZATION OF PERSONALLY IDENTIFIABLE INFORMATION | LOCATE / REMOVE / REDACT / ANONYMIZE PII"),
    ("DM-2", "DATA RETENTION AND DISPOSAL"),
    ("DM-2 (1)", "DATA RETENTION AND DISPOSAL | SYSTEM CONFIGURATION"),
    ("DM-3", "MINIMIZATION OF PII USED IN TESTING, TRAINING, AND RESEARCH"),
    ("DM-3 (1)", "MINIMIZATION OF PII USED IN TESTING, TRAINING, AND RESEARCH | RISK MINIMIZATION TECHNIQUES"),
    ("IP-1", "CONSENT"),
    ("IP-1 (1)", "CONSENT | MECHANISMS SUPPORTING ITEMIZED OR TIERED CONSENT"),
    ("IP-2", "INDIVIDUAL ACCESS"),
    ("IP-3", "REDRESS"),
    ("IP-4", "COMPLAINT MANAGEMENT"),
    ("IP-4 (1)", "COMPLAINT MANAGEMENT | RESPONSE TIMES"),
    ("SE-1", "INVENTORY OF PERSONALLY IDENTIFIABLE INFORMATION"),
    ("SE-2", "PRIVACY INCIDENT RESPONSE"),
    ("TR-1", "PRIVACY NOTICE"),
    ("TR-1 (1)", "PRIVACY NOTICE | REAL-TIME OR LAYERED NOTICE"),
    ("TR-2", "SYSTEM OF RECORDS NOTICES AND PRIVACY ACT STATEMENTS"),
    ("TR-2 (1)", "SYSTEM OF RECORDS NOTICES AND PRIVACY ACT STATEMENTS | PUBLIC WEBSITE PUBLICATION"),
    ("TR-3", "DISSEMINATION OF PRIVACY PROGRAM INFORMATION"),
    ("UL-1", "INTERNAL USE"),
    ("UL-2", "INFORMATION SHARING WITH THIRD PARTIES"),
)
