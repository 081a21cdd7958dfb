from __future__ import annotations

import logging
import os
import threading
from typing import Dict, Iterator, List, Optional, Tuple

from textdb.core.config.io import atomic_write_text, ensure_dirs
from textdb.core.config.models import StoreConfig
from textdb.core.config.paths import StoreFsPaths
from textdb.core.errors import DuplicateKeyError, KeyNotFoundError, SeparatorConflictError, StoreClosedError
from textdb.core.logger import get_logger
from textdb.core.ops_log import OpsLogger
from textdb.core.store.codec import contains_separator
from textdb.core.store.edits import EditQueue, PendingEdit, replay
from textdb.core.store.names import validate_store_name
from textdb.core.store.sync import SyncEngine, SyncResult


class TextDatabase:
    """
    Named key-value table kept in memory and reconciled with <root>/<name>.txt.

    - reads and writes never touch the disk
    - writes apply immediately and are queued for the next sync cycle
    - one RLock guards the map; the sync engine only takes it to merge and commit

    Normally obtained through StoreRegistry.open() / textdb.open_store().
    """

    def __init__(
        self,
        name: str,
        *,
        root_dir: str,
        cfg: Optional[StoreConfig] = None,
        logger: Optional[logging.Logger] = None,
        ops: Optional[OpsLogger] = None,
        backups_keep: int = 10,
        autostart: bool = True,
    ):
        self.name = validate_store_name(name)
        self.cfg = cfg or StoreConfig()
        self.paths = StoreFsPaths(root_dir=str(root_dir))
        self.path = self.paths.store_file(self.name)
        self.logger = logger or get_logger("store")

        self._lock = threading.RLock()
        self._data: Dict[str, str] = {}
        self._edits = EditQueue()
        self._closed = False

        ensure_dirs(self.paths.root_dir)
        if not os.path.exists(self.path):
            atomic_write_text(self.path, "")

        self._engine = SyncEngine(self, logger=logger or get_logger("sync"), ops=ops, backups_keep=backups_keep)
        if autostart:
            self.start()

    def __repr__(self) -> str:
        return f"TextDatabase(name={self.name!r}, path={self.path!r}, entries={self.count()}, pending={self.pending_count()})"

    # ---- lifecycle ----
    def start(self) -> None:
        self._engine.start()

    def close(self) -> Optional[SyncResult]:
        """Stop the background thread and flush everything still pending. Idempotent."""
        with self._lock:
            if self._closed:
                return None
            self._closed = True
        self._engine.stop()
        return self._engine.flush_final()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def engine(self) -> SyncEngine:
        return self._engine

    def sync(self) -> SyncResult:
        return self._engine.sync_once()

    # ---- read ----
    def count(self) -> int:
        with self._lock:
            return len(self._data)

    def __len__(self) -> int:
        return self.count()

    def contains_key(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains_key(key)

    def try_get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def get(self, key: str) -> str:
        with self._lock:
            try:
                return self._data[key]
            except KeyError:
                raise KeyNotFoundError(key, store=self.name) from None

    def __getitem__(self, key: str) -> str:
        return self.get(key)

    def keys(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._data.keys())

    def values(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._data.values())

    def items(self) -> Tuple[Tuple[str, str], ...]:
        with self._lock:
            return tuple(self._data.items())

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._data)

    def pending_count(self) -> int:
        return len(self._edits)

    # ---- write ----
    def set(self, key: str, value: str) -> None:
        self._validate(key, "Key")
        self._validate(value, "Value")
        self._edit(PendingEdit.set(key, value))

    def __setitem__(self, key: str, value: str) -> None:
        self.set(key, value)

    def add(self, key: str, value: str) -> None:
        self._validate(key, "Key")
        self._validate(value, "Value")
        self._edit(PendingEdit.add(key, value))

    def remove(self, key: str) -> None:
        if not isinstance(key, str):
            raise TypeError(f"Key must be str, not {type(key).__name__}")
        self._edit(PendingEdit.remove(key))

    def clear(self) -> None:
        self._edit(PendingEdit.clear())

    # ---- internals ----
    def _validate(self, item: str, param: str) -> None:
        if not isinstance(item, str):
            raise TypeError(f"{param} must be str, not {type(item).__name__}")
        if contains_separator(item, self.cfg.separator):
            raise SeparatorConflictError(
                f"The {param} cannot contain the key separator {self.cfg.separator!r}.",
                store=self.name,
                field=param.lower(),
            )

    def _edit(self, edit: PendingEdit) -> None:
        with self._lock:
            if self._closed:
                raise StoreClosedError(f'TextDB "{self.name}" is closed.', store=self.name)
            edit.apply(self._data)
            self._edits.put(edit)

    # Called by SyncEngine only.
    def _merge_pending(self, disk: Dict[str, str]) -> Tuple[Dict[str, str], List[PendingEdit], List[PendingEdit]]:
        with self._lock:
            drained = self._edits.drain()
            merged = dict(disk)
            skipped = replay(drained, merged, logger=self.logger, store=self.name)
            return merged, drained, skipped

    def _commit(self, merged: Dict[str, str]) -> None:
        with self._lock:
            view = dict(merged)
            # edits queued while the cycle was running stay visible to readers
            for edit in self._edits.peek():
                try:
                    edit.apply(view)
                except DuplicateKeyError:
                    continue
            self._data = view

    def _requeue(self, drained: List[PendingEdit]) -> None:
        self._edits.requeue(drained)

    def _take_snapshot(self) -> Tuple[Dict[str, str], List[PendingEdit]]:
        with self._lock:
            return dict(self._data), self._edits.drain()
