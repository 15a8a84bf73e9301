"""
STIGQter Configuration.

Application directories, database location, download sources and limits.
Everything lives under ``~/.stigqter``::

    ~/.stigqter/
        STIGQter.db     default database ($STIGQTER_DB or --db override)
        logs/           rotating log files
        backups/        copies of overwritten checklists and reports
        exports/        default --export-ckls directory
        downloads/      last CCI list and controls feed fetched
"""

from __future__ import annotations

import os
import platform
import sys
import tempfile
import threading
from contextlib import suppress
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from stigqter.core.constants import (
    APP_NAME,
    CCI_LIST_URL,
    HTTP_TIMEOUT,
    KEEP_BACKUPS,
    KEEP_LOGS,
    MAX_FILE_SIZE,
    NIST_CONTROLS_URL,
    VERSION,
)

SUBDIRS = ("logs", "backups", "exports", "downloads")


def _writable(directory: Path) -> bool:
    try:
        directory.mkdir(parents=True, exist_ok=True)
        probe = directory / f".stigqter_probe_{os.getpid()}"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink()
        return True
    except OSError:
        return False


def _home_candidates() -> Iterator[Path]:
    with suppress(RuntimeError, KeyError):
        yield Path.home()
    for env_var in ("USERPROFILE", "HOME"):
        value = os.environ.get(env_var)
        if value and os.path.isdir(value):
            yield Path(value)
    yield Path(tempfile.gettempdir()) / "stigqter_user"
    yield Path.cwd() / ".stigqter_home"


class Cfg:
    """
    Application configuration and directory management.

    Class attributes are filled in by ``init()``, which runs once on import.

    Thread-safe: Yes (uses RLock for initialization)
    """

    IS_WIN = platform.system() == "Windows"
    IS_LIN = platform.system() == "Linux"
    IS_MAC = platform.system() == "Darwin"
    MIN_PY = (3, 9)

    HOME: Optional[Path] = None
    APP_DIR: Optional[Path] = None
    LOG_DIR: Optional[Path] = None
    BACKUP_DIR: Optional[Path] = None
    EXPORT_DIR: Optional[Path] = None
    DOWNLOAD_DIR: Optional[Path] = None
    DB_FILE: Optional[Path] = None

    # Download sources
    USER_AGENT = f"{APP_NAME}/{VERSION}"
    HTTP_TIMEOUT = HTTP_TIMEOUT
    CCI_URL = CCI_LIST_URL
    NIST_CONTROLS_URL = NIST_CONTROLS_URL

    MAX_FILE = MAX_FILE_SIZE
    KEEP_BACKUPS = KEEP_BACKUPS
    KEEP_LOGS = KEEP_LOGS

    _lock = threading.RLock()
    _done = False

    @classmethod
    def init(cls) -> None:
        """Pick the first writable home and create the ``~/.stigqter`` tree."""
        with cls._lock:
            if cls._done:
                return

            tried: List[str] = []
            for candidate in _home_candidates():
                tried.append(str(candidate))
                if _writable(candidate):
                    cls.HOME = candidate
                    break
            else:
                raise RuntimeError(
                    f"Cannot find writable home directory. Tried: {', '.join(tried)}. "
                    f"Set $HOME or $USERPROFILE to a writable directory."
                )

            cls.APP_DIR = cls.HOME / ".stigqter"
            cls.LOG_DIR, cls.BACKUP_DIR, cls.EXPORT_DIR, cls.DOWNLOAD_DIR = (cls.APP_DIR / d for d in SUBDIRS)
            for directory in (cls.LOG_DIR, cls.BACKUP_DIR, cls.EXPORT_DIR, cls.DOWNLOAD_DIR):
                directory.mkdir(parents=True, exist_ok=True)

            env_db = os.environ.get("STIGQTER_DB", "").strip()
            cls.DB_FILE = Path(env_db).expanduser() if env_db else cls.APP_DIR / "STIGQter.db"
            cls._done = True

    @classmethod
    def set_db(cls, path: Union[str, Path]) -> Path:
        """Point the application at another database file."""
        with cls._lock:
            cls.DB_FILE = Path(path).expanduser()
            cls.DB_FILE.parent.mkdir(parents=True, exist_ok=True)
            return cls.DB_FILE

    @classmethod
    def check(cls) -> Tuple[bool, List[str]]:
        """``(ok, errors)`` for the interpreter, libraries and directories."""
        from stigqter.core.deps import Deps

        errs: List[str] = []
        if sys.version_info < cls.MIN_PY:
            errs.append(f"Python {cls.MIN_PY[0]}.{cls.MIN_PY[1]}+ required")
        if not Deps.HAS_REQUESTS:
            errs.append("Missing module: requests")

        ET, _ = Deps.get_xml()
        try:
            ET.fromstring("<CHECKLIST/>")
        except Exception:
            errs.append("XML parser failed")

        if cls.APP_DIR and not os.access(cls.APP_DIR, os.W_OK):
            errs.append(f"No write permission: {cls.APP_DIR}")
        if cls.DB_FILE and cls.DB_FILE.exists() and not os.access(cls.DB_FILE, os.W_OK):
            errs.append(f"Database is read-only: {cls.DB_FILE}")

        return not errs, errs

    @staticmethod
    def _prune(directory: Optional[Path], keep: int, pattern: str) -> int:
        if not directory or not directory.exists():
            return 0
        files = sorted(directory.glob(pattern), key=lambda p: p.stat().st_mtime, reverse=True)
        removed = 0
        for old in files[keep:]:
            with suppress(OSError):
                old.unlink()
                removed += 1
        return removed

    @classmethod
    def cleanup_old(cls) -> Tuple[int, int]:
        """Keep the newest KEEP_BACKUPS backups and KEEP_LOGS rotated logs."""
        backups = cls._prune(cls.BACKUP_DIR, cls.KEEP_BACKUPS, "*.bak")
        logs = cls._prune(cls.LOG_DIR, cls.KEEP_LOGS, "*.log.*")
        return backups, logs


CFG = Cfg
Cfg.init()
