from __future__ import annotations

import atexit
import logging
import threading
from typing import Any, Dict, List, Optional

from textdb.core.config.models import TextDBConfig
from textdb.core.logger import get_logger
from textdb.core.ops_log import OpsLogger
from textdb.core.store.database import TextDatabase
from textdb.core.store.names import validate_store_name


class StoreRegistry:
    """
    Directory of open stores, one TextDatabase (and one sync thread) per name.
    Stores are created on first open() and live until closed or shutdown_all().
    """

    def __init__(self, cfg: Optional[TextDBConfig] = None, *, logger: Optional[logging.Logger] = None, ops: Optional[OpsLogger] = None):
        self.cfg = cfg or TextDBConfig()
        self.logger = logger or get_logger("registry")
        if ops is None and self.cfg.journal_path:
            ops = OpsLogger(path=self.cfg.journal_path)
        self.ops = ops
        self._lock = threading.Lock()
        self._stores: Dict[str, TextDatabase] = {}
        self._opening: Dict[str, threading.Lock] = {}

    def open(self, name: str) -> TextDatabase:
        """
        Return the open store for `name`, creating it on first use.
        A store closed directly with close() is replaced by a fresh one.
        The first sync runs under a per-name lock, so other names are not blocked.
        """
        db = self._live(name)
        if db is not None:
            return db
        validate_store_name(name)
        with self._lock:
            opening = self._opening.setdefault(name, threading.Lock())
        with opening:
            db = self._live(name)
            if db is not None:
                return db
            db = TextDatabase(
                name,
                root_dir=self.cfg.root_dir,
                cfg=self.cfg.store_config(name),
                ops=self.ops,
                backups_keep=self.cfg.backups_keep,
            )
            with self._lock:
                self._stores[name] = db
        self.logger.info(f'TextDB "{name}" opened at {db.path} (interval={db.cfg.sync_interval_seconds}s)')
        self._journal(name, "open", {"path": db.path, "entries": db.count()})
        return db

    def _live(self, name: str) -> Optional[TextDatabase]:
        with self._lock:
            db = self._stores.get(name)
            if db is not None and db.closed:
                del self._stores[name]
                return None
            return db

    def _journal(self, name: str, event: str, details: Dict[str, Any]) -> None:
        if self.ops is None:
            return
        try:
            self.ops.log(store=name, event=event, outcome="ok", details=details)
        except OSError as e:
            self.logger.warning(f'TextDB "{name}" ops journal write failed ({event}): {e}')

    def get(self, name: str) -> Optional[TextDatabase]:
        return self._live(name)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._stores)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._stores

    def __len__(self) -> int:
        with self._lock:
            return len(self._stores)

    def shutdown_all(self) -> None:
        """Close every store (stop + final flush). The registry can be reused afterwards."""
        with self._lock:
            stores = list(self._stores.values())
            self._stores.clear()
        for db in stores:
            try:
                db.close()
            except Exception:  # noqa: BLE001
                self.logger.exception(f'TextDB "{db.name}" failed to close cleanly')
                continue
            self._journal(db.name, "close", {"entries": db.count()})
        if stores:
            self.logger.info(f"TextDB registry shut down ({len(stores)} store(s) flushed)")


# ---- process-wide default registry ----
_DEFAULT: Optional[StoreRegistry] = None
_DEFAULT_LOCK = threading.Lock()
_ATEXIT_REGISTERED = False


def _ensure_atexit_locked() -> None:
    global _ATEXIT_REGISTERED
    if not _ATEXIT_REGISTERED:
        atexit.register(shutdown)
        _ATEXIT_REGISTERED = True


def get_registry() -> StoreRegistry:
    global _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            _DEFAULT = StoreRegistry()
            _ensure_atexit_locked()
        return _DEFAULT


def configure(cfg: TextDBConfig, *, logger: Optional[logging.Logger] = None, ops: Optional[OpsLogger] = None) -> StoreRegistry:
    """Replace the default registry. Stores opened under the previous one are closed first."""
    global _DEFAULT
    with _DEFAULT_LOCK:
        old = _DEFAULT
        _DEFAULT = StoreRegistry(cfg, logger=logger, ops=ops)
        _ensure_atexit_locked()
        new = _DEFAULT
    if old is not None:
        old.shutdown_all()
    return new


def open_store(name: str) -> TextDatabase:
    return get_registry().open(name)


def shutdown() -> None:
    with _DEFAULT_LOCK:
        reg = _DEFAULT
    if reg is not None:
        reg.shutdown_all()
