"""User interface modules.

Public API:
    - main: CLI entry point function
"""

from __future__ import annotations

from stigqter.ui.cli import main

__all__ = ["main"]
