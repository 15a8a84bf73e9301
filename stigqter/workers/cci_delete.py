"""CCI removal worker."""

from __future__ import annotations

from stigqter.db.manager import DbManager
from stigqter.workers.base import Worker


class CCIDeleteWorker(Worker):
    """Remove every Family, Control and CCI."""

    name = "cci-delete"

    def process(self, db: DbManager) -> None:
        self.initialize(1, 0)
        self.status("Clearing DB of CCI/Control information…")
        db.delete_ccis()
        self.progress()
        self.status("Done!")
