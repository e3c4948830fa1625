"""Where graphpatch stores documents.

``DATABASE_URI`` wins when set; otherwise a SQLite file lives in
``GRAPHPATCH_DATA_DIR`` or the platform's per-user data directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import env_flag

APP_DIR_NAME: Final[str] = "graphpatch"
DEFAULT_DB_FILENAME: Final[str] = "graphpatch.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    @property
    def database_path(self) -> Path:
        return self.data_dir.expanduser().resolve() / self.database_filename

    def sqlite_uri(self, *, create_dir: bool = True) -> str:
        path = self.database_path
        if create_dir:
            path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{path}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def _platform_data_home() -> Path:
    if os.name == "nt":
        configured = os.getenv("LOCALAPPDATA")
        return Path(configured) if configured else Path.home() / "AppData" / "Local"
    configured = os.getenv("XDG_DATA_HOME")
    return Path(configured) if configured else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    configured = os.getenv("GRAPHPATCH_DATA_DIR")
    data_dir = Path(configured) if configured else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """Resolve the database URI; ``GRAPHPATCH_SQL_ECHO`` turns on statement logging."""

    echo = env_flag("GRAPHPATCH_SQL_ECHO", default=False)
    uri = os.getenv("DATABASE_URI")
    if not uri:
        uri = (storage or get_storage_config()).sqlite_uri()
    return DatabaseConfig(uri=uri, echo=echo)
