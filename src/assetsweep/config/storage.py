"""Data storage configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Literal

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError

APP_DIR_NAME: Final[str] = "assetsweep"
DEFAULT_DB_FILENAME: Final[str] = "assetsweep.db"

DatabaseBackend = Literal["sqlalchemy", "mongodb"]
_BACKENDS: Final[frozenset[str]] = frozenset({"sqlalchemy", "mongodb"})


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def ensure_data_dir(self) -> Path:
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def database_path(self, *, ensure: bool = True) -> Path:
        base = self.ensure_data_dir() if ensure else self.resolve_data_dir()
        return base / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    backend: DatabaseBackend
    uri: str
    database_name: str | None = None

    def __repr__(self) -> str:
        # connection strings routinely embed credentials
        return f"DatabaseConfig(backend={self.backend!r}, database_name={self.database_name!r})"


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = optional_env_var("ASSETSWEEP_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    backend = (optional_env_var("ASSETSWEEP_DATABASE_BACKEND") or "sqlalchemy").lower()
    if backend not in _BACKENDS:
        options = ", ".join(sorted(_BACKENDS))
        raise ConfigurationError(f"Unsupported database backend {backend!r} (use one of {options})")

    if backend == "mongodb":
        values = require_env_vars(("MONGODB_URI", "MONGODB_DATABASE"))
        return DatabaseConfig(
            backend="mongodb",
            uri=values["MONGODB_URI"],
            database_name=values["MONGODB_DATABASE"],
        )

    env_uri = optional_env_var("DATABASE_URI")
    if env_uri:
        return DatabaseConfig(backend="sqlalchemy", uri=env_uri)
    storage_config = storage or get_storage_config()
    return DatabaseConfig(backend="sqlalchemy", uri=storage_config.database_uri())
