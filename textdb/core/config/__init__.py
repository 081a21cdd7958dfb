"""
Configuration for TextDB (config/textdb.json), validated with pydantic.
"""

from textdb.core.config.manager import ConfigManager
from textdb.core.config.models import StoreConfig, TextDBConfig
from textdb.core.config.paths import ConfigFsPaths, StoreFsPaths

__all__ = ["ConfigManager", "ConfigFsPaths", "StoreConfig", "StoreFsPaths", "TextDBConfig"]
