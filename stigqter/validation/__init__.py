"""
Validation modules.

STIG Viewer compatibility checks for CKL checklists and XCCDF benchmarks.
"""

from __future__ import annotations

from stigqter.validation.validator import Val

__all__ = ["Val"]
