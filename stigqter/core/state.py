"""Process-wide shutdown flag and cleanup registry."""

from __future__ import annotations

import atexit
import signal
import sys
import threading
from contextlib import suppress
from pathlib import Path
from typing import Callable, List, Optional

class GlobalState:
    """
    Shutdown coordination shared by the CLI and every worker thread.

    Workers poll ``shutdown`` between items; SIGINT sets it and raises
    KeyboardInterrupt on the main thread, SIGTERM sets it, runs the cleanup
    callbacks and exits. Temporary files left behind by an interrupted atomic
    write are removed at exit.

    Thread Safety:
        All public methods are thread-safe via internal RLock.
    """

    _instance: Optional["GlobalState"] = None
    temps: List[Path]
    cleanups: List[Callable[[], None]]
    _lock = threading.RLock()

    def __new__(cls) -> "GlobalState":
        with cls._lock:
            if cls._instance is None:
                inst = super().__new__(cls)
                inst.shutdown = threading.Event()
                inst.temps = []
                inst.cleanups = []
                inst._cleaned = False
                atexit.register(inst.cleanup)
                inst._install_handlers()
                cls._instance = inst
        return cls._instance

    def _on_signal(self, sig, frame) -> None:
        self.shutdown.set()
        if sig == signal.SIGINT:
            raise KeyboardInterrupt
        print(f"\n[SIGNAL {sig}] Stopping workers...", file=sys.stderr)
        self.cleanup()
        sys.exit(0)

    def _install_handlers(self) -> None:
        for sig in (signal.SIGINT, signal.SIGTERM):
            # Only possible from the main thread
            with suppress(ValueError, OSError, AttributeError):
                signal.signal(sig, self._on_signal)

    def add_temp(self, path: Path) -> None:
        with self._lock:
            self.temps.append(path)

    def discard_temp(self, path: Path) -> None:
        """Forget a temp file that was renamed into place."""
        with self._lock:
            with suppress(ValueError):
                self.temps.remove(path)

    def add_cleanup(self, func: Callable[[], None]) -> None:
        with self._lock:
            self.cleanups.append(func)

    def reset(self) -> None:
        """Re-arm after a cleanup (a new CLI invocation in the same process)."""
        with self._lock:
            self.shutdown.clear()
            self._cleaned = False

    def cleanup(self) -> None:
        with self._lock:
            if self._cleaned:
                return
            self._cleaned = True
            self.shutdown.set()
            callbacks, self.cleanups = self.cleanups[::-1], []
            temps, self.temps = self.temps, []

        for func in callbacks:
            try:
                func()
            except Exception as exc:
                print(f"[WARNING] Cleanup callback failed: {exc}", file=sys.stderr)
        for temp in temps:
            with suppress(OSError):
                if temp.exists():
                    temp.unlink()

GLOBAL_STATE = GlobalState()
