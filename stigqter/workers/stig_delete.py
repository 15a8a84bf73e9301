"""STIG removal worker."""

from __future__ import annotations

from typing import List, Sequence

from stigqter.db.manager import DbManager
from stigqter.db.models import print_stig
from stigqter.workers.base import Worker


class STIGDeleteWorker(Worker):
    """Delete STIGs by id; STIGs still mapped to an asset are kept."""

    name = "stig-delete"

    def __init__(self, stig_ids: Sequence[int], **kwargs) -> None:
        super().__init__(**kwargs)
        self.stig_ids = [int(i) for i in stig_ids]

    def process(self, db: DbManager) -> None:
        self.initialize(len(self.stig_ids), 0)
        deleted: List[int] = []
        kept: List[int] = []
        for stig_id in self.stig_ids:
            self.check_shutdown()
            stig = db.get_stig(stig_id)
            if stig is None:
                self.warning(f"STIG {stig_id} does not exist")
                kept.append(stig_id)
            else:
                self.status(f"Deleting {print_stig(stig)}…")
                if db.delete_stig(stig):
                    deleted.append(stig_id)
                else:
                    self.warning(f"{print_stig(stig)} is still mapped to an asset and was not deleted")
                    kept.append(stig_id)
            self.progress()
        self.status("Done!")
        self.result.update({"ok": not kept, "deleted": deleted, "kept": kept})
