from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from textdb.core.config.io import atomic_write_json, ensure_dirs, move_to_backups, read_json_file
from textdb.core.config.models import TextDBConfig, default_config_dict
from textdb.core.config.paths import ConfigFsPaths
from textdb.core.errors import ConfigError


class ConfigManager:
    """
    Loads config/textdb.json.

    - missing file -> defaults written to disk (unless read_only)
    - corrupt JSON -> moved to config/backups/, defaults used
    - schema errors -> ConfigError (file is left in place for the operator)
    """

    def __init__(self, *, fs: Optional[ConfigFsPaths] = None, logger: Optional[logging.Logger] = None, read_only: bool = False):
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger
        self.read_only = read_only
        self._cfg: Optional[TextDBConfig] = None

    # ---------- public API ----------
    def load(self) -> TextDBConfig:
        if not self.read_only:
            ensure_dirs(self.fs.config_dir, self.fs.backups_dir)
        raw = self._load_raw()
        try:
            cfg = TextDBConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid config file {self.fs.textdb}: {e.error_count()} error(s).", errors=e.errors(include_url=False)) from e
        self._cfg = cfg
        return cfg

    def get(self) -> TextDBConfig:
        if self._cfg is None:
            raise ConfigError("Config not loaded.")
        return self._cfg

    def save(self, cfg: TextDBConfig) -> None:
        if self.read_only:
            raise ConfigError("Config manager is read-only.")
        atomic_write_json(self.fs.textdb, cfg.model_dump())
        self._cfg = cfg

    # ---------- internals ----------
    def _load_raw(self) -> Dict[str, Any]:
        rr = read_json_file(self.fs.textdb)
        if rr.ok:
            return rr.data
        if rr.error == "missing":
            data = default_config_dict()
            if not self.read_only:
                atomic_write_json(self.fs.textdb, data)
            return data
        if rr.error and (rr.error.startswith("corrupt_json") or rr.error == "not_object"):
            if self.logger:
                self.logger.warning(f"Config file {self.fs.textdb} is unreadable ({rr.error}); using defaults.")
            if not self.read_only:
                move_to_backups(self.fs.textdb, self.fs.backups_dir, reason="corrupt")
                atomic_write_json(self.fs.textdb, default_config_dict())
            return default_config_dict()
        raise ConfigError(f"Cannot read config file {self.fs.textdb}: {rr.error}")
