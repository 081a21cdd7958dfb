from __future__ import annotations

import json
import os

import pytest
from pydantic import ValidationError

from textdb.core.config.manager import ConfigManager
from textdb.core.config.models import StoreConfig, TextDBConfig
from textdb.core.config.paths import ConfigFsPaths
from textdb.core.errors import ConfigError


def _mk_cm(tmp_path, **kw) -> ConfigManager:
    return ConfigManager(fs=ConfigFsPaths(root=str(tmp_path)), logger=None, **kw)


def test_missing_file_writes_defaults(tmp_path):
    cm = _mk_cm(tmp_path)
    cfg = cm.load()
    assert cfg.defaults.sync_interval_seconds == 15.0
    assert cfg.defaults.separator == "Ǽ"
    assert cfg.root_dir == "data/textdb"
    assert os.path.exists(cm.fs.textdb)
    assert cm.get() is cfg


def test_read_only_does_not_create_files(tmp_path):
    cm = _mk_cm(tmp_path, read_only=True)
    cm.load()
    assert not os.path.exists(cm.fs.config_dir)
    with pytest.raises(ConfigError):
        cm.save(TextDBConfig())


def test_save_and_reload(tmp_path):
    cm = _mk_cm(tmp_path)
    cfg = TextDBConfig(root_dir="elsewhere", stores={"Fast": StoreConfig(sync_interval_seconds=1)})
    cm.save(cfg)
    again = _mk_cm(tmp_path).load()
    assert again.root_dir == "elsewhere"
    assert again.store_config("Fast").sync_interval_seconds == 1
    assert again.store_config("Other") == again.defaults


def test_corrupt_json_moved_to_backups_and_defaults_used(tmp_path):
    fs = ConfigFsPaths(root=str(tmp_path))
    os.makedirs(fs.config_dir, exist_ok=True)
    with open(fs.textdb, "w", encoding="utf-8") as f:
        f.write("{not json")
    cfg = _mk_cm(tmp_path).load()
    assert cfg == TextDBConfig()
    backups = os.listdir(fs.backups_dir)
    assert any(b.startswith("textdb.json.") and "corrupt" in b for b in backups)
    with open(fs.textdb, "r", encoding="utf-8") as f:
        assert json.load(f)["root_dir"] == "data/textdb"


def test_schema_errors_raise_config_error(tmp_path):
    fs = ConfigFsPaths(root=str(tmp_path))
    os.makedirs(fs.config_dir, exist_ok=True)
    with open(fs.textdb, "w", encoding="utf-8") as f:
        json.dump({"root_dir": "x", "unknown_field": 1}, f)
    with pytest.raises(ConfigError) as ei:
        _mk_cm(tmp_path).load()
    assert ei.value.code == "config_error"


def test_get_before_load_raises(tmp_path):
    with pytest.raises(ConfigError):
        _mk_cm(tmp_path).get()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"sync_interval_seconds": 0},
        {"separator": ""},
        {"separator": "x" * 9},
        {"retry_jitter_min_seconds": 5, "retry_jitter_max_seconds": 1},
        {"final_flush_attempts": 0},
    ],
)
def test_store_config_validation(kwargs):
    with pytest.raises(ValidationError):
        StoreConfig(**kwargs)


def test_store_config_is_frozen():
    cfg = StoreConfig()
    with pytest.raises(ValidationError):
        cfg.separator = "|"  # type: ignore[misc]


def test_logging_level_normalized():
    cfg = TextDBConfig.model_validate({"logging": {"level": "debug"}})
    assert cfg.logging.level == "DEBUG"
    with pytest.raises(ValidationError):
        TextDBConfig.model_validate({"logging": {"level": "loud"}})
