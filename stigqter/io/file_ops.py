"""
File operations module.

Provides atomic file writes with rollback, encoding detection, backup
management, secure XML parsing and XML extraction from (nested) ZIP archives
such as the DISA STIG library and ``U_CCI_List.zip``.
"""

from __future__ import annotations
import io
import os
import re
import shutil
import tempfile
import time
import zipfile
from contextlib import contextmanager, suppress
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Generator, IO, List, Optional, Tuple, Union

from stigqter.exceptions import FileError, ValidationError, ParseError
from stigqter.core.constants import (
    ENCODINGS,
    LARGE_FILE_THRESHOLD,
    MAX_XML_SIZE,
    MAX_RETRIES,
    MAX_ZIP_DEPTH,
    RETRY_DELAY,
)
from stigqter.core.config import Cfg
from stigqter.core.deps import Deps
from stigqter.core.logging import LOG
from stigqter.core.state import GLOBAL_STATE
from stigqter.xml.sanitizer import San

ET, XMLParseError = Deps.get_xml()


# ──────────────────────────────────────────────────────────────────────────────
# RETRY DECORATOR
# ──────────────────────────────────────────────────────────────────────────────

def retry(
    attempts: int = MAX_RETRIES,
    delay: float = RETRY_DELAY,
    exceptions: Tuple[type, ...] = (IOError, OSError),
):
    """Retry decorator with exponential backoff."""

    def decorator(func):
        def wrapper(*args, **kwargs):
            wait = delay
            last_err: Optional[BaseException] = None
            for attempt in range(1, attempts + 1):
                if GLOBAL_STATE.shutdown.is_set():
                    raise InterruptedError("Shutdown requested")
                try:
                    return func(*args, **kwargs)
                except exceptions as err:
                    last_err = err
                    if attempt < attempts:
                        LOG.d(f"{func.__name__} attempt {attempt} failed: {err}; retrying in {wait:.1f}s")
                        time.sleep(wait)
                        wait *= 2
                    continue
            if last_err:
                raise last_err
            raise RuntimeError("Retry failed without captured exception")

        wrapper.__name__ = func.__name__
        wrapper.__doc__ = func.__doc__
        return wrapper

    return decorator


# ──────────────────────────────────────────────────────────────────────────────
# FILE OPERATIONS CLASS
# ──────────────────────────────────────────────────────────────────────────────

class FO:
    """Safe file operations.

    All write operations are atomic with automatic rollback on failure.
    Reads detect the encoding; XML parsing goes through defusedxml when it is
    installed.
    """

    @staticmethod
    @contextmanager
    def atomic(target: Union[str, Path], mode: str = "w", enc: str = "utf-8", bak: bool = True) -> Generator[IO, None, None]:
        """Atomic file write with automatic rollback on failure.

        Args:
            target: Target file path
            mode: File mode (w, wb, etc.)
            enc: Encoding for text mode
            bak: Create backup before writing

        Yields:
            File handle for writing

        Raises:
            FileError: On write or rollback failure
        """
        target = San.path(target, mkpar=True)
        tmp_path: Optional[Path] = None
        backup_path: Optional[Path] = None
        fh = None

        try:
            if bak and target.exists() and target.is_file():
                timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
                backup_path = Cfg.BACKUP_DIR / f"{target.stem}_{timestamp}{target.suffix}.bak"
                shutil.copy2(str(target), str(backup_path))

            fd, tmp_name = tempfile.mkstemp(
                dir=str(target.parent),
                prefix=f".stigqter_tmp_{os.getpid()}_",
                suffix=".tmp",
                text="b" not in mode,
            )
            tmp_path = Path(tmp_name)
            GLOBAL_STATE.add_temp(tmp_path)

            if "b" in mode:
                fh = os.fdopen(fd, mode)
            else:
                # Writers control their own line endings
                fh = os.fdopen(fd, mode, encoding=enc, errors="replace", newline="")

            try:
                yield fh

                fh.flush()
                with suppress(OSError):
                    os.fsync(fh.fileno())
            finally:
                if fh and not fh.closed:
                    fh.close()
                fh = None

            # Windows file replacement with retry logic for antivirus/indexing locks
            if Cfg.IS_WIN and target.exists():
                max_attempts = 5
                for attempt in range(max_attempts):
                    try:
                        target.unlink()
                        break
                    except PermissionError:
                        if attempt < max_attempts - 1:
                            time.sleep(0.1 * (2 ** attempt))
                        else:
                            LOG.w(f"Could not delete target file after {max_attempts} attempts, replace may fail")

            tmp_path.replace(target)
            GLOBAL_STATE.discard_temp(tmp_path)
            tmp_path = None

            if bak:
                FO._clean_baks(target.stem)

        except Exception as exc:
            if fh:
                with suppress(Exception):
                    fh.close()
            if tmp_path and tmp_path.exists():
                with suppress(Exception):
                    tmp_path.unlink()
            if backup_path and backup_path.exists():
                try:
                    if target.exists():
                        target.unlink()
                    shutil.copy2(str(backup_path), str(target))
                    LOG.i(f"Restored from backup: {backup_path}")
                except Exception as rollback_err:
                    LOG.c(f"CRITICAL: Rollback failed! Manual recovery needed. Backup: {backup_path}", exc=True)
                    raise FileError(f"Atomic write failed AND rollback failed: {exc}. Backup at: {backup_path}") from rollback_err
            if isinstance(exc, FileError):
                raise
            raise FileError(f"Atomic write failed: {exc}", {"file": str(target)}) from exc
        finally:
            if tmp_path and tmp_path.exists():
                with suppress(Exception):
                    tmp_path.unlink()

    @staticmethod
    def _clean_baks(stem: str) -> None:
        """Remove old backups, keeping only the most recent ones."""
        with suppress(Exception):
            backups = sorted(
                Cfg.BACKUP_DIR.glob(f"{stem}_*.bak"),
                key=lambda p: p.stat().st_mtime,
                reverse=True,
            )
            for old in backups[Cfg.KEEP_BACKUPS :]:
                with suppress(Exception):
                    old.unlink()

    @staticmethod
    def decode(data: bytes) -> str:
        """Decode bytes trying each known encoding; strips a UTF-8 BOM."""
        for encoding in ENCODINGS:
            try:
                text = data.decode(encoding)
            except (UnicodeDecodeError, UnicodeError, LookupError):
                continue
            return text[1:] if text.startswith("\ufeff") else text
        raise FileError("Unable to decode data with any known encoding")

    @staticmethod
    @retry()
    def read(path: Union[str, Path]) -> str:
        """Read a text file with automatic encoding detection.

        Raises:
            FileError: If file cannot be decoded with any known encoding
        """
        path = San.path(path, exist=True, file=True)
        try:
            return FO.decode(path.read_bytes())
        except FileError as exc:
            raise FileError(f"Unable to decode file with any known encoding: {path}") from exc

    @staticmethod
    def parse_bytes(data: bytes, name: str = "<memory>"):
        """Parse an XML document held in memory.

        Unescaped ampersands are repaired and the parse retried once, since
        hand-edited checklists often carry them.

        Returns:
            Root element

        Raises:
            ValidationError: If the document is too large
            ParseError: If XML cannot be parsed
        """
        if len(data) > MAX_XML_SIZE:
            raise ValidationError(f"XML too large: {len(data)} bytes (max: {MAX_XML_SIZE})", {"file": name})

        if not Deps.HAS_DEFUSEDXML and len(data) > LARGE_FILE_THRESHOLD:
            raise ValidationError(
                f"Large XML document ({len(data)} bytes) requires defusedxml for safe parsing. "
                f"Install defusedxml (pip install defusedxml).",
                {"file": name},
            )

        try:
            return ET.fromstring(data)
        except XMLParseError as err:
            LOG.w(f"XML parse error in {name}: {err}; retrying with entity repair")
            try:
                content = FO.decode(data)
                content = re.sub(r"&(?!(amp|lt|gt|quot|apos|#\d+|#x[0-9A-Fa-f]+);)", "&amp;", content)
                # Drop the declaration, its encoding no longer applies to str input
                content = re.sub(r"^\s*<\?xml[^>]*\?>", "", content, count=1)
                root = ET.fromstring(content)
                LOG.i(f"{name} parsed after entity repair")
                return root
            except (XMLParseError, FileError) as inner:
                raise ParseError(f"XML parse failed: {inner}", {"file": name}) from inner

    @staticmethod
    def parse_xml(path: Union[str, Path]):
        """Parse an XML file with size checks and error recovery.

        Returns:
            Root element
        """
        path = San.path(path, exist=True, file=True)
        file_size = path.stat().st_size
        if file_size > MAX_XML_SIZE:
            raise ValidationError(f"XML file too large: {file_size} bytes (max: {MAX_XML_SIZE})")
        return FO.parse_bytes(path.read_bytes(), path.name)

    @staticmethod
    def files_from_zip(
        source: Union[str, Path, bytes],
        accept: Callable[[str], bool],
        depth: int = 0,
    ) -> List[Tuple[str, bytes]]:
        """Collect archive members accepted by ``accept``.

        Nested ``.zip`` members are opened recursively up to
        ``MAX_ZIP_DEPTH`` levels.

        Returns:
            List of ``(member name, content)`` in archive order

        Raises:
            FileError: If the archive cannot be opened
        """
        if depth > MAX_ZIP_DEPTH:
            LOG.w(f"Nested archive depth {depth} exceeds {MAX_ZIP_DEPTH}, skipped")
            return []

        if isinstance(source, bytes):
            handle = io.BytesIO(source)
            label = "<nested zip>"
        else:
            path = San.path(source, exist=True, file=True)
            handle = path
            label = str(path)

        found: List[Tuple[str, bytes]] = []
        try:
            with zipfile.ZipFile(handle) as archive:
                for info in archive.infolist():
                    if info.is_dir():
                        continue
                    name = info.filename
                    if name.lower().endswith(".zip"):
                        found.extend(FO.files_from_zip(archive.read(info), accept, depth + 1))
                    elif accept(name):
                        found.append((name, archive.read(info)))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as exc:
            raise FileError(f"Cannot read archive: {exc}", {"file": label}) from exc

        LOG.d(f"{label}: {len(found)} matching member(s)")
        return found

    @staticmethod
    def xml_from_zip(source: Union[str, Path, bytes]) -> List[Tuple[str, bytes]]:
        """All ``.xml`` members of an archive, nested archives included."""
        return FO.files_from_zip(source, lambda name: name.lower().endswith(".xml"))


__all__ = ["FO", "retry", "ET", "XMLParseError"]
