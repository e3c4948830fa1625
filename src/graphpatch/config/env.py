"""Environment variable loaders for configuration."""

from __future__ import annotations

import os

from .errors import InvalidSettingError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def env_flag(name: str, *, default: bool) -> bool:
    """Read a boolean flag; blank or unset falls back to ``default``."""

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise InvalidSettingError(f"{name} must be a boolean, got {raw!r}")
