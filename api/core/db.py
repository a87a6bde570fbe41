"""
Async database access helpers (raw SQL) using asyncpg.

`Database` owns the connection pool. The app lifespan creates it once on
startup, stores it on `app.state.db` and closes it on shutdown (see
`api/main.py`). Request handlers receive it through the `get_db` dependency.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg
from fastapi import Request

from .exceptions import StartupError

logger = logging.getLogger(__name__)


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _redact(url: str) -> str:
    parts = urlsplit(url)
    if parts.password is None:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


class Database:
    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    @classmethod
    async def connect(cls, url: str, *, min_size: int = 1, max_size: int = 5) -> "Database":
        """
        Create the pool and verify the server is reachable.

        Any failure here is fatal for the process, so it is raised as StartupError.
        """
        url = (url or "").strip()
        if not url:
            raise StartupError("DATABASE_URL is not set.")

        try:
            pool = await asyncpg.create_pool(
                dsn=_sanitize_database_url(url),
                min_size=min_size,
                max_size=max(min_size, max_size),
                command_timeout=30,
            )
        except (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
            raise StartupError(f"Failed to connect to db {_redact(url)}: {exc}") from exc

        logger.info("db_connected url=%s", _redact(url))
        return cls(pool)

    async def close(self) -> None:
        await self._pool.close()

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        row = await self._pool.fetchrow(sql, *args)
        return _record_to_dict(row) if row is not None else None

    async def execute(self, sql: str, *args: Any) -> None:
        """
        Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
        """
        await self._pool.execute(sql, *args)


def get_db(request: Request) -> Database:
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise RuntimeError("DB pool is not initialized. It is created in the app lifespan.")
    return db
