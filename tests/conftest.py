from __future__ import annotations

import logging

import pytest

from textdb.core.config.models import StoreConfig, TextDBConfig
from textdb.core.logger import LOGGER_NAME
from textdb.core.store.database import TextDatabase
from textdb.core.store.registry import StoreRegistry


@pytest.fixture
def store_root(tmp_path):
    return tmp_path / "textdb"


@pytest.fixture
def make_store(store_root):
    """
    Factory for stores with a long interval, so only explicit sync() calls run cycles.
    Every store created here is closed at teardown.
    """
    created = []

    def _make(name: str = "Test", **cfg_kwargs) -> TextDatabase:
        cfg_kwargs.setdefault("sync_interval_seconds", 3600)
        db = TextDatabase(name, root_dir=str(store_root), cfg=StoreConfig(**cfg_kwargs))
        created.append(db)
        return db

    yield _make
    for db in created:
        db.close()


@pytest.fixture
def registry(store_root):
    reg = StoreRegistry(TextDBConfig(root_dir=str(store_root), defaults=StoreConfig(sync_interval_seconds=3600)))
    yield reg
    reg.shutdown_all()


@pytest.fixture
def clean_textdb_logger():
    """Restores the "textdb" logger after tests that call setup_logging()."""
    logger = logging.getLogger(LOGGER_NAME)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    logger.handlers.clear()
    yield logger
    for h in logger.handlers:
        h.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]
