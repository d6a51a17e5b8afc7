"""
In-process data store.

Useful for tests, demos and small single-process services. Rows are kept as
plain dicts keyed by table and identity, holding every field (excluded ones
too). Entities are rebuilt from them on every read so callers never share
mutable state with the store.
"""

from __future__ import annotations

import copy
import threading
from typing import Any

from pydantic import BaseModel

from restpipe.pipeline.capabilities import field_values, identity_field, identity_unset

from .base import DataStore, StoreError


class _Tables:
    def __init__(self) -> None:
        self.rows: dict[str, dict[Any, dict[str, Any]]] = {}
        self.lock = threading.Lock()

    def table(self, name: str) -> dict[Any, dict[str, Any]]:
        return self.rows.setdefault(name, {})


def _matches(row: dict[str, Any], conditions: tuple[tuple[str, Any], ...]) -> bool:
    for column, wanted in conditions:
        value = row.get(column)
        # Path parameters arrive as strings; compare loosely like SQL would.
        if value != wanted and str(value) != str(wanted):
            return False
    return True


class MemoryStore(DataStore):
    def __init__(self, *, _tables: _Tables | None = None, _conditions: tuple = ()) -> None:
        self._tables = _tables if _tables is not None else _Tables()
        self._conditions = _conditions

    def where(self, **conditions: Any) -> MemoryStore:
        return MemoryStore(
            _tables=self._tables,
            _conditions=self._conditions + tuple(conditions.items()),
        )

    @property
    def conditions(self) -> dict[str, Any]:
        return dict(self._conditions)

    def add(self, table: str, entity: BaseModel) -> BaseModel:
        """
        Insert `entity` and return a copy carrying its (possibly generated) identity.
        """
        model_type = type(entity)
        id_field = identity_field(model_type)
        row = copy.deepcopy(field_values(entity))
        with self._tables.lock:
            rows = self._tables.table(table)
            ident = row.get(id_field)
            if identity_unset(ident):
                numeric = [k for k in rows if isinstance(k, int)]
                ident = max(numeric, default=0) + 1
                row[id_field] = ident
            elif ident in rows:
                raise StoreError(f"Duplicate {id_field}={ident!r} in {table}.")
            rows[ident] = row
            return model_type.model_validate(copy.deepcopy(row))

    async def get(self, model_type: type[BaseModel], table: str, ident: Any) -> BaseModel | None:
        with self._tables.lock:
            row = self._tables.table(table).get(ident)
            if row is None or not _matches(row, self._conditions):
                return None
            return model_type.model_validate(copy.deepcopy(row))

    async def list(self, model_type: type[BaseModel], table: str) -> list[BaseModel]:
        with self._tables.lock:
            rows = [copy.deepcopy(r) for r in self._tables.table(table).values() if _matches(r, self._conditions)]
        return [model_type.model_validate(r) for r in rows]

    async def create(self, table: str, entity: BaseModel) -> BaseModel:
        return self.add(table, entity)

    async def update(self, table: str, entity: BaseModel) -> BaseModel:
        id_field = identity_field(type(entity))
        row = copy.deepcopy(field_values(entity))
        ident = row.get(id_field)
        with self._tables.lock:
            rows = self._tables.table(table)
            if ident not in rows:
                raise StoreError(f"No row with {id_field}={ident!r} in {table}.")
            rows[ident] = row
        return type(entity).model_validate(copy.deepcopy(row))

    async def delete(self, table: str, entity: BaseModel) -> None:
        ident = getattr(entity, identity_field(type(entity)), None)
        with self._tables.lock:
            self._tables.table(table).pop(ident, None)
