"""
Background worker base class.

A worker performs one long operation (downloading CCIs, parsing STIG zips,
writing checklists) against its own DbManager. It runs synchronously with
``run()`` or on a dedicated thread with ``start()``/``join()``; progress is
published as WorkerEvent items on ``events`` and to any registered callbacks.

Event kinds:
    initialize  (maximum, value)  reset the progress range
    progress    value             -1 advances by one
    status      text
    warning     text
    finished    result dict
    error       exception
"""

from __future__ import annotations

import queue
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, NamedTuple, Optional, Union

from stigqter.core.logging import LOG
from stigqter.core.state import GLOBAL_STATE
from stigqter.db.manager import DbManager

EVENT_KINDS = ("initialize", "progress", "status", "warning", "finished", "error")


class WorkerEvent(NamedTuple):
    kind: str
    value: Any = None


class Worker:
    """Base class for long-running operations.

    Subclasses implement ``process(db)`` and fill ``self.result``.
    """

    name = "worker"

    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        callbacks: Optional[Dict[str, Callable[..., None]]] = None,
    ) -> None:
        self.db_path = db_path
        self.events: "queue.Queue[WorkerEvent]" = queue.Queue()
        self.callbacks: Dict[str, List[Callable[..., None]]] = {}
        for kind, func in (callbacks or {}).items():
            self.on(kind, func)
        self.warnings: List[str] = []
        self.result: Dict[str, Any] = {}
        self.error: Optional[BaseException] = None
        self.maximum = 0
        self.value = 0
        self._thread: Optional[threading.Thread] = None

    # ── Event publishing ────────────────────────────────────────────────────

    def on(self, kind: str, func: Callable[..., None]) -> "Worker":
        if kind not in EVENT_KINDS:
            raise ValueError(f"Unknown worker event: {kind}")
        self.callbacks.setdefault(kind, []).append(func)
        return self

    def _emit(self, kind: str, *args: Any) -> None:
        value = args if len(args) > 1 else (args[0] if args else None)
        self.events.put(WorkerEvent(kind, value))
        for func in self.callbacks.get(kind, []):
            try:
                func(*args)
            except Exception as exc:
                LOG.w(f"{self.name} {kind} callback failed: {exc}")

    def initialize(self, maximum: int, value: int = 0) -> None:
        self.maximum = maximum
        self.value = value
        self._emit("initialize", maximum, value)

    def progress(self, value: int = -1) -> None:
        self.value = self.value + 1 if value < 0 else value
        self._emit("progress", self.value)

    def status(self, text: str) -> None:
        LOG.i(text)
        self._emit("status", text)

    def warning(self, text: str) -> None:
        LOG.w(text)
        self.warnings.append(text)
        self._emit("warning", text)

    def drain(self) -> Iterator[WorkerEvent]:
        """Yield queued events without blocking."""
        while True:
            try:
                yield self.events.get_nowait()
            except queue.Empty:
                return

    # ── Execution ───────────────────────────────────────────────────────────

    def check_shutdown(self) -> None:
        if GLOBAL_STATE.shutdown.is_set():
            raise InterruptedError(f"{self.name} cancelled")

    def process(self, db: DbManager) -> None:
        raise NotImplementedError

    def _execute(self) -> None:
        with LOG.scope(worker=self.name):
            db: Optional[DbManager] = None
            try:
                db = DbManager(self.db_path)
                self.process(db)
                self.result.setdefault("ok", True)
                self.result["warnings"] = list(self.warnings)
                self._emit("finished", self.result)
            except BaseException as exc:
                self.error = exc
                self.result["ok"] = False
                self.result["error"] = str(exc)
                self.result["warnings"] = list(self.warnings)
                if isinstance(exc, Exception) and not isinstance(exc, InterruptedError):
                    LOG.e(f"{self.name} failed: {exc}", exc=True)
                self._emit("error", exc)
            finally:
                if db is not None:
                    db.close()

    def run(self) -> Dict[str, Any]:
        """Run on the calling thread; re-raises the worker's failure."""
        self._execute()
        if self.error is not None:
            raise self.error
        return self.result

    def start(self) -> "Worker":
        """Run on a new thread."""
        if self._thread is not None:
            raise RuntimeError(f"{self.name} already started")
        self._thread = threading.Thread(target=self._execute, name=self.name, daemon=True)
        self._thread.start()
        return self

    def join(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Wait for a started worker; re-raises the worker's failure."""
        if self._thread is None:
            raise RuntimeError(f"{self.name} was not started")
        self._thread.join(timeout)
        if self._thread.is_alive():
            raise TimeoutError(f"{self.name} still running after {timeout}s")
        if self.error is not None:
            raise self.error
        return self.result

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
