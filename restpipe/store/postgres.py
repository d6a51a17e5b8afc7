"""
PostgreSQL data store (raw SQL) using asyncpg.

Table names are derived from model classes and column names from model
fields, so every entity maps onto one row of one table. Scoping conditions
are kept as SQL fragments with `?` placeholders and numbered when a
statement is built.
"""

from __future__ import annotations

import logging
from typing import Any

import asyncpg
from pydantic import BaseModel

from restpipe.core import db
from restpipe.pipeline.capabilities import field_values, identity_field, identity_unset

from .base import DataStore, StoreError

logger = logging.getLogger(__name__)


class _PoolHolder:
    def __init__(self, dsn: str | None) -> None:
        self.dsn = dsn
        self.pool: asyncpg.Pool | None = None


class PostgresStore(DataStore):
    def __init__(
        self,
        dsn: str | None = None,
        *,
        _holder: _PoolHolder | None = None,
        _clauses: tuple[tuple[str, tuple[Any, ...]], ...] = (),
    ) -> None:
        self._holder = _holder if _holder is not None else _PoolHolder(dsn)
        self._clauses = _clauses

    async def startup(self) -> None:
        if self._holder.pool is not None:
            return None
        self._holder.pool = await db.create_pool(self._holder.dsn)

    async def shutdown(self) -> None:
        if self._holder.pool is None:
            return None
        await self._holder.pool.close()
        self._holder.pool = None

    def pool(self) -> asyncpg.Pool:
        if self._holder.pool is None:
            raise RuntimeError("DB pool is not initialized. Call startup() first.")
        return self._holder.pool

    def where_sql(self, clause: str, *args: Any) -> PostgresStore:
        """
        Narrow with a raw SQL fragment, e.g. where_sql("user_id = ? OR public", 4).
        """
        return PostgresStore(_holder=self._holder, _clauses=self._clauses + ((clause, args),))

    def where(self, **conditions: Any) -> PostgresStore:
        scoped = self
        for column, value in conditions.items():
            scoped = scoped.where_sql(f"{db.quote_identifier(column)} = ?", value)
        return scoped

    def _where(self, extra: list[tuple[str, tuple[Any, ...]]], start: int = 1) -> tuple[str, list[Any]]:
        parts: list[str] = []
        args: list[Any] = []
        index = start
        for clause, clause_args in [*extra, *self._clauses]:
            numbered, index = db.number_placeholders(clause, index)
            parts.append(f"({numbered})")
            args.extend(clause_args)
        if not parts:
            return "", args
        return " WHERE " + " AND ".join(parts), args

    def build_select(self, table: str, id_field: str, ident: Any = None, *, by_id: bool = False) -> tuple[str, list[Any]]:
        qtable = db.quote_identifier(table)
        qid = f"{qtable}.{db.quote_identifier(id_field)}"
        extra = [(f"{qid} = ?", (ident,))] if by_id else []
        where, args = self._where(extra)
        sql = f"SELECT * FROM {qtable}{where}"
        sql += " LIMIT 1" if by_id else f" ORDER BY {qid}"
        return sql, args

    def build_insert(self, table: str, entity: BaseModel) -> tuple[str, list[Any]]:
        id_field = identity_field(type(entity))
        row = field_values(entity)
        if identity_unset(row.get(id_field)):
            row.pop(id_field, None)
        qtable = db.quote_identifier(table)
        if not row:
            return f"INSERT INTO {qtable} DEFAULT VALUES RETURNING *", []
        columns = ", ".join(db.quote_identifier(c) for c in row)
        values = ", ".join(f"${i}" for i in range(1, len(row) + 1))
        return f"INSERT INTO {qtable} ({columns}) VALUES ({values}) RETURNING *", list(row.values())

    def build_update(self, table: str, entity: BaseModel) -> tuple[str, list[Any]]:
        id_field = identity_field(type(entity))
        row = field_values(entity)
        ident = row.pop(id_field, None)
        if not row:
            raise StoreError(f"Nothing to update in {table}: model has no columns besides {id_field}.")
        assignments = ", ".join(f"{db.quote_identifier(c)} = ${i}" for i, c in enumerate(row, start=2))
        qtable = db.quote_identifier(table)
        sql = f"UPDATE {qtable} SET {assignments} WHERE {db.quote_identifier(id_field)} = $1 RETURNING *"
        return sql, [ident, *row.values()]

    async def get(self, model_type: type[BaseModel], table: str, ident: Any) -> BaseModel | None:
        sql, args = self.build_select(table, identity_field(model_type), ident, by_id=True)
        row = await db.fetch_one(self.pool(), sql, *args)
        return model_type.model_validate(row) if row is not None else None

    async def list(self, model_type: type[BaseModel], table: str) -> list[BaseModel]:
        sql, args = self.build_select(table, identity_field(model_type))
        rows = await db.fetch_all(self.pool(), sql, *args)
        return [model_type.model_validate(r) for r in rows]

    async def create(self, table: str, entity: BaseModel) -> BaseModel:
        sql, args = self.build_insert(table, entity)
        try:
            row = await db.fetch_one(self.pool(), sql, *args)
        except asyncpg.PostgresError as exc:
            raise StoreError(f"Failed to insert into {table}: {exc}") from exc
        if row is None:
            raise StoreError(f"Failed to insert into {table}.")
        return type(entity).model_validate(row)

    async def update(self, table: str, entity: BaseModel) -> BaseModel:
        sql, args = self.build_update(table, entity)
        try:
            row = await db.fetch_one(self.pool(), sql, *args)
        except asyncpg.PostgresError as exc:
            raise StoreError(f"Failed to update {table}: {exc}") from exc
        if row is None:
            raise StoreError(f"No row to update in {table}.")
        return type(entity).model_validate(row)

    async def delete(self, table: str, entity: BaseModel) -> None:
        id_field = identity_field(type(entity))
        qtable = db.quote_identifier(table)
        try:
            await db.execute(
                self.pool(),
                f"DELETE FROM {qtable} WHERE {db.quote_identifier(id_field)} = $1",
                getattr(entity, id_field, None),
            )
        except asyncpg.PostgresError as exc:
            raise StoreError(f"Failed to delete from {table}: {exc}") from exc
        logger.debug("Deleted %s=%r from %s", id_field, getattr(entity, id_field, None), table)
