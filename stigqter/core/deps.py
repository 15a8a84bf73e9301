"""Third-party library detection and the XML parser hand-out."""

from __future__ import annotations

import sys
from contextlib import suppress
from typing import Dict


class Deps:
    """Detect the parsing and download libraries once per process."""

    HAS_DEFUSEDXML = False
    HAS_REQUESTS = False

    @classmethod
    def check(cls) -> None:
        with suppress(Exception):
            from defusedxml import ElementTree as DET

            DET.fromstring("<probe/>")
            cls.HAS_DEFUSEDXML = True

        with suppress(ImportError):
            import requests  # noqa: F401

            cls.HAS_REQUESTS = True

    @classmethod
    def get_xml(cls):
        """``(ElementTree module, ParseError)`` for untrusted input, defusedxml when present."""
        if cls.HAS_DEFUSEDXML:
            from defusedxml import ElementTree as ET
            from defusedxml.ElementTree import ParseError as XMLParseError
        else:
            import xml.etree.ElementTree as ET  # noqa: N813
            from xml.etree.ElementTree import ParseError as XMLParseError

        return ET, XMLParseError

    @classmethod
    def versions(cls) -> Dict[str, str]:
        """Installed versions of the libraries STIGQter relies on."""
        found = {"python": sys.version.split()[0]}
        for name in ("defusedxml", "openpyxl", "requests"):
            module = sys.modules.get(name)
            if module is None:
                with suppress(ImportError):
                    module = __import__(name)
            found[name] = getattr(module, "__version__", "missing") if module else "missing"
        return found

    @classmethod
    def warn_if_unsafe(cls) -> None:
        """STIG, CCI and CKL files come from outside this machine."""
        if not cls.HAS_DEFUSEDXML:
            print(
                "[WARNING] defusedxml is not installed: XML is parsed without entity protection. "
                "Install it with: pip install defusedxml",
                file=sys.stderr,
            )


Deps.check()
