"""
Persistence modules.

SQLite schema, entity dataclasses and the ``DbManager`` data access layer.
"""

from __future__ import annotations

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
    print_control,
    print_stig,
    print_stig_check,
)
from stigqter.db.schema import ensure_schema
from stigqter.db.manager import DbManager, parse_control

__all__ = [
    "CCI",
    "STIG",
    "Asset",
    "CKLCheck",
    "Control",
    "Family",
    "STIGCheck",
    "print_asset",
    "print_cci",
    "print_control",
    "print_stig",
    "print_stig_check",
    "ensure_schema",
    "DbManager",
    "parse_control",
]
