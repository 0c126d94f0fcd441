"""Where printconf keeps its database."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
DATA_DIR_ENV: Final[str] = "PRINTCONF_DATA_DIR"
DEFAULT_DB_FILENAME: Final[str] = "printconf.db"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    # Only set when the URI points at the default SQLite file.
    data_dir: Path | None = None


def default_data_dir() -> Path:
    if os.name == "nt":
        local = os.getenv("LOCALAPPDATA")
        root = Path(local) if local else Path.home() / "AppData" / "Local"
    else:
        xdg = os.getenv("XDG_DATA_HOME")
        root = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return root / "printconf"


def get_database_config() -> DatabaseConfig:
    """Resolve the database URI, creating the data directory for the SQLite default."""

    override = os.getenv(DATABASE_URI_ENV)
    if override:
        return DatabaseConfig(uri=override)

    configured = os.getenv(DATA_DIR_ENV)
    data_dir = (Path(configured) if configured else default_data_dir()).expanduser().resolve()
    data_dir.mkdir(parents=True, exist_ok=True)
    return DatabaseConfig(
        uri=f"sqlite+pysqlite:///{data_dir / DEFAULT_DB_FILENAME}", data_dir=data_dir
    )
