"""
CCI import worker.

Populates Families, Controls and CCIs from two public sources:

1. the NIST SP 800-53 rev4 controls feed (``800-53-controls.xml``), which
   supplies families, controls and enhancements;
2. the DISA CCI list (``U_CCI_List.xml``, normally shipped zipped), which maps
   each CCI to a rev4 control.

The privacy families and controls of Appendix J are not in the feed and are
added from constants. Either source may be a URL or a local file.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple, Union

from stigqter.core.config import Cfg
from stigqter.core.constants import NIST_REVISION, PRIVACY_CONTROLS, PRIVACY_FAMILIES
from stigqter.core.logging import LOG
from stigqter.db.manager import DbManager
from stigqter.db.models import CCI
from stigqter.exceptions import ParseError
from stigqter.io import net
from stigqter.io.file_ops import FO
from stigqter.xml.schema import Sch
from stigqter.xml.utils import XmlUtils
from stigqter.workers.base import Worker

Source = Union[str, Path, bytes]

_SMALL_WORDS = frozenset(["a", "an", "and", "as", "at", "by", "for", "in", "of", "on", "or", "the", "to"])


def family_name(text: str) -> str:
    """``AUDIT AND ACCOUNTABILITY`` → ``Audit and Accountability``."""
    words = (text or "").strip().lower().split()
    return " ".join(
        w if i and w in _SMALL_WORDS else w[:1].upper() + w[1:]
        for i, w in enumerate(words)
    )


def parse_controls_feed(root) -> Tuple[List[Tuple[str, str]], List[Tuple[str, str, str]]]:
    """Read families and controls from the NIST controls feed.

    Returns:
        ``([(acronym, family name)], [(number, title, description)])`` in
        document order; the description is the control's top-level statement.
    """
    families: List[Tuple[str, str]] = []
    seen = set()
    controls: List[Tuple[str, str, str]] = []

    def statement_text(elem) -> str:
        statement = XmlUtils.child(elem, Sch.NIST_STATEMENT)
        if statement is None:
            return ""
        return XmlUtils.child_text(statement, Sch.NIST_DESCRIPTION)

    for control in XmlUtils.descendants(root, Sch.NIST_CONTROL):
        number = XmlUtils.child_text(control, Sch.NIST_NUMBER)
        if not number:
            continue
        acronym = number[:2].upper()
        family = XmlUtils.child_text(control, Sch.NIST_FAMILY)
        if family and acronym not in seen:
            seen.add(acronym)
            families.append((acronym, family_name(family)))

        controls.append((number, XmlUtils.child_text(control, Sch.NIST_TITLE), statement_text(control)))

        for enhancement in XmlUtils.descendants(control, Sch.NIST_ENHANCEMENT):
            enh_number = XmlUtils.child_text(enhancement, Sch.NIST_NUMBER)
            if enh_number:
                controls.append(
                    (enh_number, XmlUtils.child_text(enhancement, Sch.NIST_TITLE), statement_text(enhancement))
                )

    return families, controls


def control_from_index(index: str) -> str:
    """Control text from a CCI reference index.

    ``AC-2 (4) b`` → ``AC-2(4)``; ``AC-1 a 1`` → ``AC-1``; ``AU-12.1`` → ``AU-12``.
    A parenthesis after the second space is a sub-item, not an enhancement.
    """
    index = (index or "").strip()
    control = index
    first_space = index.find(" ")
    if first_space >= 0:
        control = control[:first_space]
    if "." in control:
        control = control[: control.find(".")]
    if "(" in index and "(" not in control:
        second_space = index.find(" ", first_space + 1) if first_space >= 0 else -1
        paren = index.find("(")
        close = index.find(")", paren)
        if close > paren and (second_space <= 0 or paren < second_space):
            control += index[paren : close + 1]
    return control


def parse_cci_list(root) -> List[Tuple[int, str, str]]:
    """Read ``(cci number, control text, definition)`` from the DISA CCI list.

    Only the first reference for the supported NIST revision is used; items
    without one are skipped.
    """
    items: List[Tuple[int, str, str]] = []
    for item in XmlUtils.descendants(root, Sch.CCI_ITEM):
        cci_id = (item.get("id") or "").strip()
        digits = cci_id[-6:]
        if not digits.isdigit():
            continue
        definition = XmlUtils.child_text(item, Sch.CCI_DEFINITION)
        for ref in XmlUtils.descendants(item, Sch.CCI_REFERENCE):
            if ref.get("version") == NIST_REVISION and ref.get("index"):
                items.append((int(digits), control_from_index(ref.get("index")), definition))
                break
    return items


class CCIAddWorker(Worker):
    """Download (or read) the controls feed and CCI list into the database."""

    name = "cci-add"

    def __init__(
        self,
        cci_source: Optional[Source] = None,
        controls_source: Optional[Source] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.cci_source = cci_source or Cfg.CCI_URL
        self.controls_source = controls_source or Cfg.NIST_CONTROLS_URL

    def _fetch(self, source: Source, label: str) -> bytes:
        if isinstance(source, bytes):
            return source
        text = str(source)
        if text.lower().startswith(("http://", "https://")):
            self.status(f"Downloading {label} from {text}…")
            data = net.download(text)
            keep = Cfg.DOWNLOAD_DIR / (text.rstrip("/").rsplit("/", 1)[-1] or f"{label}.bin")
            with FO.atomic(keep, mode="wb", bak=False) as fh:
                fh.write(data)
            LOG.d(f"Saved {label} to {keep}")
            return data
        self.status(f"Reading {label} from {text}…")
        path = Path(text).expanduser()
        return path.read_bytes()

    def _cci_documents(self, data: bytes) -> List[Tuple[str, bytes]]:
        if data[:2] == b"PK":
            self.status("Extracting CCIs…")
            return FO.xml_from_zip(data)
        return [("U_CCI_List.xml", data)]

    def process(self, db: DbManager) -> None:
        if db.get_families():
            self.warning("CCIs are already imported; delete them before importing again")
            self.result.update({"ok": False, "families": 0, "controls": 0, "ccis": 0})
            return

        self.initialize(1, 0)

        # Families and controls
        feed = FO.parse_bytes(self._fetch(self.controls_source, "NIST controls"), "800-53-controls.xml")
        families, controls = parse_controls_feed(feed)
        if not families:
            raise ParseError("No control families found in the NIST controls feed")

        added_families = 0
        added_controls = 0
        with db.delayed():
            for acronym, name in list(families) + list(PRIVACY_FAMILIES):
                self.status(f"Adding {acronym} - {name}…")
                added_families += db.add_family(acronym, name)

        self.initialize(len(controls) + len(PRIVACY_CONTROLS) + 1, 1)
        with db.delayed():
            for number, title, description in controls:
                self.check_shutdown()
                added_controls += db.add_control(number, title, description)
                self.progress()
            for number, title in PRIVACY_CONTROLS:
                added_controls += db.add_control(number, title, "")
                self.progress()

        # CCIs
        parsed: List[Tuple[int, str, str]] = []
        for name, document in self._cci_documents(self._fetch(self.cci_source, "CCI list")):
            self.status(f"Parsing {name}…")
            parsed.extend(parse_cci_list(FO.parse_bytes(document, name)))

        self.initialize(len(parsed) + 1, 1)
        added_ccis = 0
        with db.delayed():
            for number, control_text, definition in parsed:
                self.check_shutdown()
                control = db.get_control(control_text)
                if control is None:
                    self.warning(f"CCI-{number:06d} references unknown control {control_text}")
                cci = CCI(cci=number, control_id=control.id if control else None, definition=definition)
                added_ccis += db.add_cci(cci)
                self.progress()

        self.status("Done!")
        self.result.update({"families": added_families, "controls": added_controls, "ccis": added_ccis})
