"""
TextDB: small embedded key-value stores backed by flat text files.

    import textdb

    db = textdb.open_store("Players")
    db.set("alice", "42")
    db.get("alice")

Writes are visible immediately and reach disk on the next sync cycle
(every 15 seconds by default) or when the store is closed.
"""

from textdb.core.config.models import StoreConfig, TextDBConfig
from textdb.core.errors import (
    ConfigError,
    CorruptedStoreError,
    DuplicateKeyError,
    KeyNotFoundError,
    NameValidationError,
    SeparatorConflictError,
    StoreClosedError,
    TextDBError,
)
from textdb.core.store import StoreRegistry, SyncResult, TextDatabase, configure, get_registry, open_store, shutdown

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "CorruptedStoreError",
    "DuplicateKeyError",
    "KeyNotFoundError",
    "NameValidationError",
    "SeparatorConflictError",
    "StoreClosedError",
    "StoreConfig",
    "StoreRegistry",
    "SyncResult",
    "TextDBConfig",
    "TextDBError",
    "TextDatabase",
    "configure",
    "get_registry",
    "open_store",
    "shutdown",
]
