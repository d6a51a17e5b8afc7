"""
Data store adapters.

The pipeline only talks to `DataStore`. Read lookups go through the
per-request handle (which a query_scope stage may narrow); writes always go
through the unscoped handle held by Options.
"""

from .base import DataStore, StoreError
from .memory import MemoryStore
from .postgres import PostgresStore

__all__ = ["DataStore", "MemoryStore", "PostgresStore", "StoreError"]
