"""Custom exception classes for STIGQter.

All exceptions raised by the application inherit from STIGError so callers
can catch one type and still see where the failure happened.
"""

from __future__ import annotations
from typing import Optional, Dict, Any


class STIGError(Exception):
    """Base exception with context.

    Attributes:
        msg: The error message
        ctx: Optional dictionary of contextual information (file, rule, CCI...)
    """

    def __init__(self, msg: str, ctx: Optional[Dict[str, Any]] = None):
        super().__init__(msg)
        self.msg = msg
        self.ctx = ctx or {}

    def __str__(self) -> str:
        if self.ctx:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.ctx.items())
            return f"{self.msg} [{ctx_str}]"
        return self.msg


class ValidationError(STIGError):
    """Raised when input or checklist validation fails."""


class FileError(STIGError):
    """Raised when file operations fail."""


class ParseError(STIGError):
    """Raised when XML or workbook parsing fails."""


class DatabaseError(STIGError):
    """Raised when the SQLite data layer fails."""


class NetworkError(STIGError):
    """Raised when a download fails."""
