from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass(eq=False)
class TextDBError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.user_message)

    def __str__(self) -> str:
        return self.user_message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": dict(self.context or {}),
        }


# ---- Caller-facing errors (raised synchronously) ----
class NameValidationError(TextDBError, ValueError):
    def __init__(self, user_message: str = "Invalid store name.", **ctx: Any):
        super().__init__("invalid_store_name", user_message, severity=Severity.ERROR, recoverable=False, context=ctx)


class SeparatorConflictError(TextDBError, ValueError):
    def __init__(self, user_message: str = "Key or value contains the separator.", **ctx: Any):
        super().__init__("separator_conflict", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class DuplicateKeyError(TextDBError, KeyError):
    def __init__(self, key: str, user_message: Optional[str] = None, **ctx: Any):
        ctx.setdefault("key", key)
        super().__init__("duplicate_key", user_message or f"An entry with key '{key}' already exists.", severity=Severity.WARN, recoverable=False, context=ctx)


class KeyNotFoundError(TextDBError, KeyError):
    def __init__(self, key: str, user_message: Optional[str] = None, **ctx: Any):
        ctx.setdefault("key", key)
        super().__init__("key_not_found", user_message or f"Key '{key}' was not found.", severity=Severity.INFO, recoverable=False, context=ctx)


class StoreClosedError(TextDBError, RuntimeError):
    def __init__(self, user_message: str = "Store is closed.", **ctx: Any):
        super().__init__("store_closed", user_message, severity=Severity.ERROR, recoverable=False, context=ctx)


# ---- Background / environment errors ----
class CorruptedStoreError(TextDBError):
    def __init__(self, user_message: str = "Text database is corrupted - odd number of items.", **ctx: Any):
        super().__init__("corrupted_store", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


class ConfigError(TextDBError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)
