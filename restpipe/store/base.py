"""
Abstract data store used by the built-in fetch and persist stages.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel


# Persistence failures are explicit and separable from other runtime errors.
class StoreError(RuntimeError):
    pass


class DataStore(ABC):
    """
    A handle onto the backing store.

    `where()` must return a new handle with the extra conditions applied and
    leave `self` untouched: concurrent requests share the unscoped handle.
    """

    @abstractmethod
    def where(self, **conditions: Any) -> DataStore:
        """Return a narrowed handle matching column == value for each condition."""

    @abstractmethod
    async def get(self, model_type: type[BaseModel], table: str, ident: Any) -> BaseModel | None:
        ...

    @abstractmethod
    async def list(self, model_type: type[BaseModel], table: str) -> list[BaseModel]:
        ...

    @abstractmethod
    async def create(self, table: str, entity: BaseModel) -> BaseModel:
        ...

    @abstractmethod
    async def update(self, table: str, entity: BaseModel) -> BaseModel:
        ...

    @abstractmethod
    async def delete(self, table: str, entity: BaseModel) -> None:
        ...

    async def startup(self) -> None:
        return None

    async def shutdown(self) -> None:
        return None
