"""
Async database access helpers (raw SQL) using asyncpg.

PostgresStore owns one pool per Options block. The pool is created when the
application starts and closed on shutdown (see `restpipe/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
- scoping fragments may be written with `?` and are renumbered by
  `number_placeholders()` before execution.
"""

from __future__ import annotations

import os
import re
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

_QMARK = re.compile(r"\?")
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


async def create_pool(dsn: str | None = None) -> asyncpg.Pool:
    return await asyncpg.create_pool(
        dsn=_sanitize_database_url(dsn) if dsn else database_url(),
        min_size=1,
        max_size=5,
        command_timeout=30,
    )


def quote_identifier(name: str) -> str:
    # Table and column names come from model classes, never from requests.
    if not _IDENTIFIER.match(name or ""):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


def number_placeholders(sql: str, start: int = 1) -> tuple[str, int]:
    """
    Replace each `?` with $start, $start+1, ... and return the next free index.
    """
    counter = start

    def _next(_: re.Match) -> str:
        nonlocal counter
        placeholder = f"${counter}"
        counter += 1
        return placeholder

    return _QMARK.sub(_next, sql), counter


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(pool: asyncpg.Pool, sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await pool.fetchrow(sql, *args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(pool: asyncpg.Pool, sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await pool.fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]


async def execute(pool: asyncpg.Pool, sql: str, *args: Any) -> None:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
    """
    await pool.execute(sql, *args)
