from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_SEPARATOR = "Ǽ"


class StoreConfig(BaseModel):
    """
    Per-store settings. Fixed once the store is open.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    sync_interval_seconds: float = Field(default=15.0, gt=0, le=86_400)
    separator: str = Field(default=DEFAULT_SEPARATOR, min_length=1, max_length=8)
    retry_jitter_min_seconds: float = Field(default=3.0, ge=0, le=3600)
    retry_jitter_max_seconds: float = Field(default=6.0, ge=0, le=3600)
    final_flush_attempts: int = Field(default=3, ge=1, le=20)
    join_timeout_seconds: float = Field(default=5.0, gt=0, le=600)

    @model_validator(mode="after")
    def _jitter_range(self) -> "StoreConfig":
        if self.retry_jitter_max_seconds < self.retry_jitter_min_seconds:
            raise ValueError("retry_jitter_max_seconds must be >= retry_jitter_min_seconds")
        return self


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    log_dir: str = "logs"
    level: str = "INFO"
    console: bool = True

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        v = str(v).upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return v


class TextDBConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    config_version: int = Field(default=1, ge=1)
    root_dir: str = "data/textdb"
    defaults: StoreConfig = Field(default_factory=StoreConfig)
    stores: Dict[str, StoreConfig] = Field(default_factory=dict)
    backups_keep: int = Field(default=10, ge=1, le=200)
    journal_path: Optional[str] = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def store_config(self, name: str) -> StoreConfig:
        return self.stores.get(name) or self.defaults


def default_config_dict() -> Dict[str, object]:
    return TextDBConfig().model_dump()
