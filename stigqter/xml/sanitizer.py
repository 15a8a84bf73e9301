"""Input sanitization and validation utilities.

Philosophy:
- Fail fast: Raise ValidationError on invalid input, never silently accept bad data
- No silent coercion: Don't "fix" invalid identifiers, reject them explicitly
- Free text (descriptions, finding details) is cleaned rather than rejected

Security Features:
- Null byte and control character filtering
- Path length and file size limits
- Filename component scrubbing for exported checklists
"""

from __future__ import annotations
import os
import re
from pathlib import Path
from typing import Any, Optional, Union

from stigqter.core.constants import IS_WINDOWS, MAX_FILE_SIZE, Severity, Status
from stigqter.exceptions import ValidationError


class San:
    """Input sanitization and validation utilities.

    All validators raise ValidationError on invalid input.

    Thread-safe: Yes (stateless utility class)
    """

    HOST = re.compile(r"^[A-Za-z0-9._-]{1,255}$")
    IP = re.compile(
        r"^((25[0-5]|2[0-4][0-9]|1[0-9]{2}|[1-9]?[0-9])\.){3}"
        r"(25[0-5]|2[0-4][0-9]|1[0-9]{2}|[1-9]?[0-9])$"
    )
    MAC = re.compile(r"^([0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}$")
    VULN = re.compile(r"^V-\d{1,10}$")
    RULE = re.compile(r"^SV-\d+r\d+_rule$")
    CCI = re.compile(r"^CCI-?(\d{1,6})$", re.I)

    CTRL = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
    SPACES = re.compile(r"\s+")
    UNSAFE_NAME = re.compile(r"[^A-Za-z0-9._-]+")

    MAX_PATH = 260 if IS_WINDOWS else 4096

    @staticmethod
    def path(
        value: Union[str, Path],
        *,
        exist: bool = False,
        file: bool = False,
        dir: bool = False,
        mkpar: bool = False,
    ) -> Path:
        """Validate and resolve a file system path.

        Args:
            value: Path string or Path object to validate
            exist: If True, path must exist
            file: If True, path must be a file (if it exists)
            dir: If True, path must be a directory (if it exists)
            mkpar: If True, create parent directories

        Returns:
            Resolved Path object

        Raises:
            ValidationError: If path is invalid or doesn't meet the requirements
        """
        if not value or (isinstance(value, str) and not value.strip()):
            raise ValidationError("Empty path")

        as_str = str(value).strip()
        if "\x00" in as_str:
            raise ValidationError("Null byte in path")

        try:
            path = Path(as_str).expanduser().resolve(strict=False)
        except (OSError, RuntimeError) as exc:
            raise ValidationError(f"Path validation failed for '{value}': {exc}") from exc

        if len(str(path)) > San.MAX_PATH:
            raise ValidationError(f"Path too long: {len(str(path))}")

        if mkpar:
            path.parent.mkdir(parents=True, exist_ok=True)

        if exist and not path.exists():
            raise ValidationError(f"Not found: {path}")

        if file and path.exists() and not path.is_file():
            raise ValidationError(f"Not a file: {path}")

        if dir and path.exists() and not path.is_dir():
            raise ValidationError(f"Not a directory: {path}")

        if path.exists() and path.is_file():
            size = path.stat().st_size
            if size > MAX_FILE_SIZE:
                raise ValidationError(f"File too large: {size}")
            if not os.access(path, os.R_OK):
                raise ValidationError(f"File not readable: {path}")

        return path

    @staticmethod
    def host(value: str) -> str:
        """Validate an asset host name.

        Raises:
            ValidationError: If the name is empty or contains invalid characters
        """
        if not value or not str(value).strip():
            raise ValidationError("Empty host name")
        value = str(value).strip()[:255]
        if not San.HOST.match(value):
            raise ValidationError(f"Invalid host name: {value}")
        return value

    @staticmethod
    def ip(value: str) -> str:
        """Validate IPv4 address format; empty input returns ""."""
        if not value or not str(value).strip():
            return ""
        value = str(value).strip()
        if not San.IP.match(value):
            raise ValidationError(f"Invalid IP format: {value}")
        return value

    @staticmethod
    def mac(value: str) -> str:
        """Validate a MAC address, normalised to upper-case colon form."""
        if not value or not str(value).strip():
            return ""
        value = str(value).strip().upper().replace("-", ":")
        if not San.MAC.match(value):
            raise ValidationError(f"Invalid MAC: {value}")
        return value

    @staticmethod
    def vuln(value: str) -> str:
        """Validate vulnerability ID format (V-NNNNNN)."""
        if not value or not str(value).strip():
            raise ValidationError("Empty vulnerability ID")
        value = str(value).strip()
        if not San.VULN.match(value):
            raise ValidationError(f"Invalid vulnerability ID: {value}")
        return value

    @staticmethod
    def cci(value: Union[str, int]) -> int:
        """Parse a CCI identifier (``CCI-000366``, ``366``) into its number.

        Raises:
            ValidationError: If the value is not a CCI identifier
        """
        if isinstance(value, int):
            if value <= 0:
                raise ValidationError(f"Invalid CCI: {value}")
            return value
        text = str(value or "").strip()
        if text.isdigit():
            return San.cci(int(text))
        match = San.CCI.match(text)
        if not match:
            raise ValidationError(f"Invalid CCI: {value}")
        return San.cci(int(match.group(1)))

    @staticmethod
    def status(value: Union[str, int, Status]) -> Status:
        """Validate a status given as CKL string, display name or integer.

        Raises:
            ValidationError: On anything that is not one of the four statuses
        """
        if isinstance(value, int):
            try:
                return Status(value)
            except ValueError as exc:
                raise ValidationError(f"Invalid status: {value}") from exc
        key = str(value or "").strip().lower().replace(" ", "").replace("_", "")
        if key not in ("notreviewed", "open", "notafinding", "notapplicable"):
            raise ValidationError(f"Invalid status: {value}")
        return Status.from_string(key)

    @staticmethod
    def sev(value: Union[str, int, Severity], allow_none: bool = False) -> Severity:
        """Validate a severity (``high``/``medium``/``low`` or CAT I-III)."""
        if isinstance(value, int):
            try:
                result = Severity(value)
            except ValueError as exc:
                raise ValidationError(f"Invalid severity: {value}") from exc
        else:
            text = str(value or "").strip()
            result = Severity.from_string(text)
            if result is Severity.NONE and text.lower() not in ("", "none"):
                raise ValidationError(f"Invalid severity: {value}")
        if result is Severity.NONE and not allow_none:
            raise ValidationError(f"Severity required: {value!r}")
        return result

    @staticmethod
    def text(value: Any) -> str:
        """Remove control characters and collapse whitespace runs."""
        if value is None:
            return ""
        value = San.CTRL.sub("", str(value))
        return San.SPACES.sub(" ", value).strip()

    @staticmethod
    def xml(value: Any, mx: Optional[int] = None) -> str:
        """Clean a value for XML element text.

        Removes control characters that XML 1.0 cannot carry. Entity escaping
        is left to ElementTree. Optionally truncates to ``mx`` characters.
        """
        if value is None:
            return ""
        value = San.CTRL.sub("", str(value))
        if mx is not None and len(value) > mx:
            value = value[: mx - 15] + "\n[TRUNCATED]"
        return value

    @staticmethod
    def filename(value: str, default: str = "unnamed") -> str:
        """Reduce a string to a safe file name component."""
        cleaned = San.UNSAFE_NAME.sub("_", str(value or "")).strip("._")
        return cleaned[:120] or default
