"""
STIGQter XML Utility Functions.

Namespace-agnostic lookups and text extraction shared by the XCCDF, CCI list,
NIST feed and CKL readers.
"""

from __future__ import annotations
import re
import xml.etree.ElementTree as ET
from typing import Dict, Iterator, List, Optional

from stigqter.xml.schema import Sch
from stigqter.core.logging import LOG


class XmlUtils:
    """
    Shared XML processing utilities.

    Provides:
    - XML element indentation for pretty printing
    - Child lookup by local name (documents mix XCCDF 1.1/1.2 namespaces)
    - Text content extraction from mixed-content elements
    - CKL ``STIG_DATA``/``SI_DATA`` flattening

    Thread-safe: Yes (stateless utility class)
    """

    @staticmethod
    def indent_xml(elem: ET.Element, level: int = 0) -> None:
        """
        Recursively indent XML element tree for pretty printing.

        Modifies the element tree in-place.
        """
        indent = "\n" + "\t" * level
        if len(elem):
            if not elem.text or not elem.text.strip():
                elem.text = indent + "\t"
            for i, child in enumerate(elem):
                XmlUtils.indent_xml(child, level + 1)
                if not child.tail or not child.tail.strip():
                    # Last child gets dedented, others get full indent
                    child.tail = indent if i == len(elem) - 1 else indent + "\t"
        else:
            if level and (not elem.tail or not elem.tail.strip()):
                elem.tail = indent

    @staticmethod
    def local(elem: ET.Element) -> str:
        """Local (namespace-free) tag name of an element."""
        return Sch.strip_ns(elem.tag)

    @staticmethod
    def children(elem: ET.Element, name: str) -> Iterator[ET.Element]:
        """Direct children whose local tag is ``name``."""
        for child in elem:
            if Sch.strip_ns(child.tag) == name:
                yield child

    @staticmethod
    def child(elem: ET.Element, name: str) -> Optional[ET.Element]:
        """First direct child whose local tag is ``name``."""
        return next(XmlUtils.children(elem, name), None)

    @staticmethod
    def child_text(elem: ET.Element, name: str, default: str = "") -> str:
        """Stripped text of the first direct child named ``name``."""
        found = XmlUtils.child(elem, name)
        if found is None or found.text is None:
            return default
        return found.text.strip()

    @staticmethod
    def descendants(elem: ET.Element, name: str) -> Iterator[ET.Element]:
        """All descendants (document order) whose local tag is ``name``."""
        for node in elem.iter():
            if node is not elem and Sch.strip_ns(node.tag) == name:
                yield node

    @staticmethod
    def extract_text_content(elem: Optional[ET.Element]) -> str:
        """
        Text extraction with mixed content handling.

        XCCDF ``fixtext``/``check-content`` and NIST statements can contain
        nested elements; fragments are joined with newlines and runs of blank
        lines collapsed.

        Example:
            >>> elem = ET.fromstring("<fix><code>cmd1</code><code>cmd2</code></fix>")
            >>> XmlUtils.extract_text_content(elem)
            'cmd1\\ncmd2'
        """
        if elem is None:
            return ""

        parts: List[str] = []
        for fragment in elem.itertext():
            cleaned = fragment.strip() if fragment else ""
            if cleaned:
                parts.append(cleaned)

        if not parts:
            return ""

        result = "\n".join(parts)
        result = re.sub(r"\n\s*\n\s*\n+", "\n\n", result)
        return result.strip()

    @staticmethod
    def get_stig_data(vuln: ET.Element) -> Dict[str, List[str]]:
        """
        Flatten the ``STIG_DATA`` children of a CKL ``VULN``.

        Returns a mapping of ``VULN_ATTRIBUTE`` to every ``ATTRIBUTE_DATA``
        value; ``CCI_REF`` legitimately repeats.
        """
        data: Dict[str, List[str]] = {}
        for sd in vuln.findall(Sch.STIG_DATA):
            attr = (sd.findtext(Sch.VULN_ATTRIBUTE) or "").strip()
            if not attr:
                LOG.d("STIG_DATA without VULN_ATTRIBUTE skipped")
                continue
            data.setdefault(attr, []).append((sd.findtext(Sch.ATTRIBUTE_DATA) or "").strip())
        return data

    @staticmethod
    def get_si_data(istig: ET.Element) -> Dict[str, str]:
        """Flatten the ``STIG_INFO/SI_DATA`` entries of a CKL ``iSTIG``."""
        data: Dict[str, str] = {}
        for si in istig.findall(f"STIG_INFO/{Sch.SI_DATA}"):
            name = (si.findtext(Sch.SID_NAME) or "").strip()
            if name:
                data[name] = (si.findtext(Sch.SID_DATA) or "").strip()
        return data
