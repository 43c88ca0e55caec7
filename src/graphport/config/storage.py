"""Where graphport keeps its database when no URI is configured."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "graphport"
DEFAULT_DB_FILENAME: Final[str] = "graphport.db"
SQLITE_URI_PREFIX: Final[str] = "sqlite+pysqlite:///"
_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local data directory holding the default SQLite database."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def database_path(self, *, ensure: bool = True) -> Path:
        data_dir = self.resolve_data_dir()
        if ensure:
            data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename

    def database_uri(self) -> str:
        return f"{SQLITE_URI_PREFIX}{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Engine settings; ``echo`` logs every statement an import or export issues."""

    uri: str
    echo: bool = False


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("GRAPHPORT_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else _default_data_dir()
    filename = os.getenv("GRAPHPORT_DB_FILENAME", "").strip() or DEFAULT_DB_FILENAME
    return StorageConfig(data_dir=data_dir, database_filename=filename)


def get_database_config(
    *,
    uri: str | None = None,
    storage: StorageConfig | None = None,
) -> DatabaseConfig:
    """An explicit ``uri`` wins, then ``DATABASE_URI``, then a SQLite file in the data dir."""

    echo = _env_flag("GRAPHPORT_SQL_ECHO")
    explicit_uri = uri or os.getenv("DATABASE_URI")
    if explicit_uri:
        return DatabaseConfig(uri=explicit_uri, echo=echo)
    storage_config = storage or get_storage_config()
    return DatabaseConfig(uri=storage_config.database_uri(), echo=echo)
