"""
Async database access helpers (raw SQL) using asyncpg.

`Database` owns the connection pool. The app factory opens it in the
lifespan handler and closes it on shutdown (see `api/main.py`), then hands
the instance to the repositories that need it.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS comic (
    id          SERIAL PRIMARY KEY,
    isbn        VARCHAR(255) NOT NULL,
    name        VARCHAR(255) NOT NULL,
    year        VARCHAR(255) NOT NULL,
    author      VARCHAR(255) NOT NULL,
    description TEXT NOT NULL,
    image       VARCHAR(255) NOT NULL DEFAULT '',
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE UNIQUE INDEX IF NOT EXISTS comic_isbn_key ON comic (isbn);
"""


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


class Database:
    def __init__(
        self,
        dsn: str,
        *,
        min_size: int = 0,
        max_size: int = 5,
        idle_seconds: float = 10.0,
    ) -> None:
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.idle_seconds = idle_seconds
        self._pool: asyncpg.Pool | None = None

    async def open(self) -> None:
        if self._pool is not None:
            return None
        if not self.dsn:
            raise RuntimeError("DATABASE_URL is not set.")
        # Idle connections are closed after `idle_seconds`; min_size=0 lets the
        # pool drain completely when the service is quiet.
        self._pool = await asyncpg.create_pool(
            dsn=_sanitize_database_url(self.dsn),
            min_size=self.min_size,
            max_size=self.max_size,
            max_inactive_connection_lifetime=self.idle_seconds,
        )
        logger.info(
            "db_pool_opened min_size=%s max_size=%s idle_seconds=%s",
            self.min_size,
            self.max_size,
            self.idle_seconds,
        )

    async def close(self) -> None:
        if self._pool is None:
            return None
        await self._pool.close()
        self._pool = None
        logger.info("db_pool_closed")

    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call open() on startup.")
        return self._pool

    async def ensure_schema(self) -> None:
        """
        Create the `comic` table and its isbn index when missing.
        """
        await self.execute(SCHEMA_SQL)

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        row = await self.pool().fetchrow(sql, *args)
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        rows = await self.pool().fetch(sql, *args)
        return [_record_to_dict(r) for r in rows]

    async def execute(self, sql: str, *args: Any) -> str:
        """
        Run a statement and return asyncpg's status string (e.g. "DELETE 1").
        """
        return await self.pool().execute(sql, *args)
