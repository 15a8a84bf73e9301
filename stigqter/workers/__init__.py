"""
Long-running operations.

Each worker owns a DbManager and reports progress through WorkerEvent items
and callbacks; run synchronously with ``run()`` or threaded with
``start()``/``join()``.
"""

from __future__ import annotations

from stigqter.workers.base import EVENT_KINDS, Worker, WorkerEvent
from stigqter.workers.cci_add import CCIAddWorker
from stigqter.workers.cci_delete import CCIDeleteWorker
from stigqter.workers.stig_add import STIGAddWorker
from stigqter.workers.stig_delete import STIGDeleteWorker
from stigqter.workers.asset_add import AssetAddWorker
from stigqter.workers.ckl_import import CKLImportWorker
from stigqter.workers.ckl_export import CKLExportWorker
from stigqter.workers.emass_report import EMASSReportWorker
from stigqter.workers.emass_import import EMASSImportWorker
from stigqter.workers.findings_report import FindingsReportWorker
from stigqter.workers.map_unmapped import MapUnmappedWorker

__all__ = [
    "EVENT_KINDS",
    "Worker",
    "WorkerEvent",
    "CCIAddWorker",
    "CCIDeleteWorker",
    "STIGAddWorker",
    "STIGDeleteWorker",
    "AssetAddWorker",
    "CKLImportWorker",
    "CKLExportWorker",
    "EMASSReportWorker",
    "EMASSImportWorker",
    "FindingsReportWorker",
    "MapUnmappedWorker",
]
