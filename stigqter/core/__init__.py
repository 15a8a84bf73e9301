"""Core infrastructure modules.

Provides foundational components including configuration, logging,
state management, and dependency detection.
"""

from __future__ import annotations

from stigqter.core.constants import (
    VERSION,
    BUILD_DATE,
    APP_NAME,
    STIG_VIEWER_VERSION,
    DB_VERSION,
    DEFAULT_CCI,
    Status,
    Severity,
    ENCODINGS,
    MAX_FILE_SIZE,
    MAX_XML_SIZE,
    LARGE_FILE_THRESHOLD,
    MAX_RETRIES,
    RETRY_DELAY,
    PRIVACY_FAMILIES,
    PRIVACY_CONTROLS,
)
from stigqter.core.state import GlobalState, GLOBAL_STATE
from stigqter.core.deps import Deps
from stigqter.core.config import Cfg, CFG
from stigqter.core.logging import Log, LOG

__all__ = [
    "VERSION",
    "BUILD_DATE",
    "APP_NAME",
    "STIG_VIEWER_VERSION",
    "DB_VERSION",
    "DEFAULT_CCI",
    "Status",
    "Severity",
    "ENCODINGS",
    "MAX_FILE_SIZE",
    "MAX_XML_SIZE",
    "LARGE_FILE_THRESHOLD",
    "MAX_RETRIES",
    "RETRY_DELAY",
    "PRIVACY_FAMILIES",
    "PRIVACY_CONTROLS",
    "GlobalState",
    "GLOBAL_STATE",
    "Deps",
    "Cfg",
    "CFG",
    "Log",
    "LOG",
]
