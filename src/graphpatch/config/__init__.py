"""Application configuration helpers."""

from __future__ import annotations

from .env import env_flag
from .errors import InvalidSettingError, SettingsError
from .patching import PatchConfig, get_patch_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DatabaseConfig",
    "InvalidSettingError",
    "PatchConfig",
    "SettingsError",
    "StorageConfig",
    "env_flag",
    "get_database_config",
    "get_patch_config",
    "get_storage_config",
]
