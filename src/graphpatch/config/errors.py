"""Configuration error definitions."""

from __future__ import annotations


class SettingsError(RuntimeError):
    """Raised when configuration values are invalid."""


class InvalidSettingError(SettingsError):
    """Raised when an environment variable holds a value that cannot be parsed."""

