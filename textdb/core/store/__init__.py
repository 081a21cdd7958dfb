"""
File-backed key-value stores.

State lives in memory; a sync thread per store folds the backing text file
and locally queued edits together on a fixed interval.
"""

from textdb.core.store.database import TextDatabase
from textdb.core.store.registry import StoreRegistry, configure, get_registry, open_store, shutdown
from textdb.core.store.sync import SyncEngine, SyncResult

__all__ = [
    "StoreRegistry",
    "SyncEngine",
    "SyncResult",
    "TextDatabase",
    "configure",
    "get_registry",
    "open_store",
    "shutdown",
]
