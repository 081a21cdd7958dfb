from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ConfigFsPaths:
    root: str = "."

    @property
    def config_dir(self) -> str:
        return os.path.join(self.root, "config")

    @property
    def backups_dir(self) -> str:
        return os.path.join(self.config_dir, "backups")

    # Files
    @property
    def textdb(self) -> str:
        return os.path.join(self.config_dir, "textdb.json")


@dataclass(frozen=True)
class StoreFsPaths:
    root_dir: str

    @property
    def backups_dir(self) -> str:
        return os.path.join(self.root_dir, "backups")

    def store_file(self, name: str) -> str:
        return os.path.join(self.root_dir, f"{name}.txt")
