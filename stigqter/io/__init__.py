"""
I/O modules.

Atomic writes, encoding detection, secure XML parsing, ZIP extraction, HTTP
downloads and xlsx workbooks.
"""

from __future__ import annotations

from stigqter.io.file_ops import FO, retry
from stigqter.io.net import download
from stigqter.io.xlsx import read_rows

__all__ = ["FO", "retry", "download", "read_rows"]
