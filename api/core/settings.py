"""
Runtime configuration.

Settings are read once at startup (environment first, then CLI flags) and
passed explicitly to `create_app()`. Nothing else in the codebase reads
`os.environ`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DATABASE_URL = "postgresql://gowiki@localhost:5432/gowiki"
DEFAULT_PORT = 8080
DEFAULT_PORT_FILE = "final-port.txt"
DEFAULT_DATA_DIR = "data"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    return default


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    # When set, bind 127.0.0.1:0 and write the bound address to `port_file`;
    # `host` and `port` only apply otherwise.
    find_open_port: bool = False
    host: str = "0.0.0.0"
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    port_file: Path = Path(DEFAULT_PORT_FILE)

    database_url: str = DEFAULT_DATABASE_URL
    db_pool_min_size: int = Field(default=1, ge=1)
    db_pool_max_size: int = Field(default=5, ge=1)

    data_dir: Path = Path(DEFAULT_DATA_DIR)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, **overrides: Any) -> "Settings":
        values: dict[str, Any] = {
            "find_open_port": _env_bool("WIKI_FIND_OPEN_PORT", False),
            "host": _env_str("WIKI_HOST", "0.0.0.0"),
            "port": _env_int("WIKI_PORT", DEFAULT_PORT),
            "port_file": Path(_env_str("WIKI_PORT_FILE", DEFAULT_PORT_FILE)),
            "database_url": _env_str("DATABASE_URL", DEFAULT_DATABASE_URL),
            "db_pool_min_size": _env_int("DB_POOL_MIN_SIZE", 1),
            "db_pool_max_size": _env_int("DB_POOL_MAX_SIZE", 5),
            "data_dir": Path(_env_str("WIKI_DATA_DIR", DEFAULT_DATA_DIR)),
            "log_level": _env_str("LOG_LEVEL", "INFO").upper(),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
