"""Allow ``python -m stigqter``."""

from __future__ import annotations

import sys

from stigqter.ui.cli import main

if __name__ == "__main__":
    sys.exit(main())
