"""Application logging.

Messages go to stderr (warnings and above) and to a rotating file in
``Cfg.LOG_DIR``. Workers tag their messages through :meth:`Log.scope`, so a
line written while importing a STIG reads::

    [2025-01-24 10:02:11] [WARNING ] [stig-add] [worker=stig-add] CCI-009999 not found
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator

CONSOLE_FORMAT = "[%(levelname)s] %(message)s"
FILE_FORMAT = "[%(asctime)s] [%(levelname)-8s] [%(threadName)s] %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"
FILE_MAX_BYTES = 10 * 1024 * 1024
FILE_BACKUPS = 5


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _file_handler(name: str) -> logging.Handler:
    from stigqter.core.config import Cfg

    handler = logging.handlers.RotatingFileHandler(
        str(Cfg.LOG_DIR / f"{name}.log"),
        maxBytes=FILE_MAX_BYTES,
        backupCount=FILE_BACKUPS,
        encoding="utf-8",
        delay=True,
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, FILE_DATEFMT))
    return handler


class Log:
    """
    Named logger with per-thread context.

    ``Log(name)`` always returns the same instance for a name. Context set
    with ``ctx()`` lives in thread-local storage: the CLI thread and a worker
    thread can log at the same time without mixing their tags.

    Thread-safe: Yes
    """

    _instances: Dict[str, "Log"] = {}
    _lock = threading.RLock()

    def __new__(cls, name: str) -> "Log":
        with cls._lock:
            inst = cls._instances.get(name)
            if inst is None:
                inst = super().__new__(cls)
                inst._attach(name)
                cls._instances[name] = inst
            return inst

    def _attach(self, name: str) -> None:
        self.name = name
        self.log = logging.getLogger(name)
        self.log.setLevel(logging.INFO)
        self.log.propagate = False
        self.log.handlers.clear()
        self._local = threading.local()

        self.log.addHandler(_console_handler())
        try:
            self.log.addHandler(_file_handler(name))
        except OSError as exc:
            # Read-only home: console only
            print(f"[WARNING] File logging disabled: {exc}", file=sys.stderr)

    def set_verbose(self, verbose: bool = True) -> None:
        """DEBUG to the file and INFO to the console when ``verbose``."""
        self.log.setLevel(logging.DEBUG if verbose else logging.INFO)
        for handler in self.log.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(logging.INFO if verbose else logging.WARNING)

    # ------------------------------------------------------------------ context

    def _data(self) -> Dict[str, Any]:
        data = getattr(self._local, "data", None)
        if data is None:
            data = self._local.data = {}
        return data

    def ctx(self, **kw: Any) -> None:
        """Tag this thread's messages with ``key=value`` pairs."""
        self._data().update(kw)

    def clear(self) -> None:
        self._data().clear()

    @contextmanager
    def scope(self, **kw: Any) -> Iterator["Log"]:
        """Apply ``ctx(**kw)`` for the duration of a block, then restore."""
        data = self._data()
        saved = dict(data)
        data.update(kw)
        try:
            yield self
        finally:
            data.clear()
            data.update(saved)

    def _context_str(self) -> str:
        data = self._data()
        if not data:
            return ""
        return "[" + ", ".join(f"{k}={v}" for k, v in data.items()) + "] "

    # ----------------------------------------------------------------- messages

    def _emit(self, level: int, msg: Any, exc: bool = False) -> None:
        self.log.log(level, self._context_str() + str(msg), exc_info=exc)

    def d(self, msg: Any) -> None:
        self._emit(logging.DEBUG, msg)

    def i(self, msg: Any) -> None:
        self._emit(logging.INFO, msg)

    def w(self, msg: Any) -> None:
        self._emit(logging.WARNING, msg)

    def e(self, msg: Any, exc: bool = False) -> None:
        self._emit(logging.ERROR, msg, exc)

    def c(self, msg: Any, exc: bool = False) -> None:
        self._emit(logging.CRITICAL, msg, exc)


LOG = Log("stigqter")
