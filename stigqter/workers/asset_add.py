"""Asset creation worker."""

from __future__ import annotations

from typing import List, Sequence

from stigqter.db.manager import DbManager
from stigqter.db.models import Asset, print_asset, print_stig
from stigqter.workers.base import Worker


class AssetAddWorker(Worker):
    """Create an asset and map the selected STIGs to it."""

    name = "asset-add"

    def __init__(self, asset: Asset, stig_ids: Sequence[int] = (), **kwargs) -> None:
        super().__init__(**kwargs)
        self.asset = asset
        self.stig_ids = [int(i) for i in stig_ids]

    def process(self, db: DbManager) -> None:
        self.initialize(len(self.stig_ids) + 1, 0)
        self.status(f"Adding asset {print_asset(self.asset)}…")
        if not db.add_asset(self.asset):
            self.warning(f"Asset {print_asset(self.asset)} already exists")
            self.result.update({"ok": False, "asset_id": None, "mapped": []})
            return
        self.progress()

        mapped: List[int] = []
        for stig_id in self.stig_ids:
            self.check_shutdown()
            stig = db.get_stig(stig_id)
            if stig is None:
                self.warning(f"STIG {stig_id} does not exist")
            else:
                self.status(f"Mapping {print_stig(stig)}…")
                if db.add_stig_to_asset(stig, self.asset):
                    mapped.append(stig_id)
            self.progress()

        self.status("Done!")
        self.result.update(
            {"ok": len(mapped) == len(self.stig_ids), "asset_id": self.asset.id, "mapped": mapped}
        )
