"""
XML processing modules.

Schema definitions, sanitization and utility functions for XCCDF
benchmarks, the CCI list, the NIST controls feed and CKL checklists.
"""

from __future__ import annotations

from stigqter.xml.schema import Sch
from stigqter.xml.sanitizer import San
from stigqter.xml.utils import XmlUtils

__all__ = [
    "Sch",
    "San",
    "XmlUtils",
]
