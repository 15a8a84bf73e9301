"""Remap STIG checks with missing CCIs."""

from __future__ import annotations

from stigqter.core.constants import DEFAULT_CCI
from stigqter.db.manager import DbManager
from stigqter.workers.base import Worker


class MapUnmappedWorker(Worker):
    name = "map-unmapped"

    def process(self, db: DbManager) -> None:
        self.initialize(1, 0)
        self.status(f"Mapping unmapped checks to CCI-{DEFAULT_CCI:06d}…")
        fallback = db.get_cci_by_cci(DEFAULT_CCI)
        if fallback is None:
            self.warning("The CCI index is empty; import CCIs before remapping checks")
            self.result.update({"ok": False, "remapped": 0})
            return
        remapped = db.map_unmapped()
        self.progress()
        self.status("Done!")
        self.result.update({"ok": True, "remapped": remapped})
