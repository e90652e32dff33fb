"""Database location settings.

Without ``DATABASE_URI`` gigqueue keeps a SQLite file in the per-user data
directory (``$XDG_DATA_HOME/gigqueue`` or ``%LOCALAPPDATA%\\gigqueue``), which
``GIGQUEUE_DATA_DIR`` overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from .env import env_flag

APP_DIR_NAME: Final[str] = "gigqueue"
DEFAULT_DB_FILENAME: Final[str] = "gigqueue.db"


def default_data_dir() -> Path:
    if os.name == "nt":
        root = os.getenv("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    else:
        root = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(root).expanduser() / APP_DIR_NAME


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path = field(default_factory=default_data_dir)
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def sqlite_uri(self, *, create_dir: bool = True) -> str:
        directory = self.resolve_data_dir()
        if create_dir:
            directory.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{directory / self.database_filename}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def get_storage_config() -> StorageConfig:
    override = os.getenv("GIGQUEUE_DATA_DIR")
    return StorageConfig(data_dir=Path(override)) if override else StorageConfig()


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    uri = os.getenv("DATABASE_URI") or (storage or get_storage_config()).sqlite_uri()
    return DatabaseConfig(uri=uri, echo=env_flag("GIGQUEUE_SQL_ECHO"))


def get_database_uri() -> str:
    return get_database_config().uri
