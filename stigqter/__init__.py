"""STIGQter - STIG compliance tracking against NIST 800-53 controls.

Tracks DISA Security Technical Implementation Guide (STIG) checklists for
computing assets, maps every check to its CCI and NIST 800-53 control, and
moves results between CKL files, eMASS Test Result imports and reports.

Package Structure:
    core/           - Core infrastructure (config, logging, state management)
    xml/            - XML schema constants, sanitizer and utilities
    io/             - File operations (atomic writes, zip extraction, downloads)
    db/             - SQLite data layer (models, schema migrations, DbManager)
    workers/        - Long-running import/export pipelines
    validation/     - CKL and XCCDF structure validation
    ui/             - Command-line interface
"""

from __future__ import annotations

from stigqter.core.constants import VERSION, BUILD_DATE, APP_NAME
from stigqter.exceptions import (
    STIGError,
    ValidationError,
    FileError,
    ParseError,
    DatabaseError,
    NetworkError,
)

__version__ = VERSION
__build_date__ = BUILD_DATE
__app_name__ = APP_NAME

__all__ = [
    "VERSION",
    "BUILD_DATE",
    "APP_NAME",
    "STIGError",
    "ValidationError",
    "FileError",
    "ParseError",
    "DatabaseError",
    "NetworkError",
]
