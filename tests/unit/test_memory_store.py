"""
Unit Tests for MemoryStore.

Test Aspects Covered:
    ✅ Business Logic: generated identities, scoping, updates
    ✅ Edge Cases: duplicate identity, missing rows, scoped handles are independent
"""

from __future__ import annotations

import asyncio

import pytest

from restpipe.store import MemoryStore, StoreError
from tests.conftest import PrivateWidget, User, Widget


@pytest.fixture
def memory() -> MemoryStore:
    store = MemoryStore()
    store.add("private_widgets", PrivateWidget(user_id=1, name="a"))
    store.add("private_widgets", PrivateWidget(user_id=1, name="b"))
    store.add("private_widgets", PrivateWidget(user_id=2, name="c"))
    return store


class TestMemoryStore:
    def test_generates_identities(self, memory: MemoryStore) -> None:
        rows = asyncio.run(memory.list(PrivateWidget, "private_widgets"))

        assert [r.id for r in rows] == [1, 2, 3]

    def test_duplicate_identity_raises(self, memory: MemoryStore) -> None:
        with pytest.raises(StoreError):
            asyncio.run(memory.create("private_widgets", PrivateWidget(id=1, name="dup")))

    def test_where_returns_new_handle(self, memory: MemoryStore) -> None:
        scoped = memory.where(user_id=1)

        assert scoped is not memory
        assert memory.conditions == {}
        assert len(asyncio.run(scoped.list(PrivateWidget, "private_widgets"))) == 2
        assert len(asyncio.run(memory.list(PrivateWidget, "private_widgets"))) == 3

    def test_where_compares_path_strings(self, memory: MemoryStore) -> None:
        rows = asyncio.run(memory.where(user_id="2").list(PrivateWidget, "private_widgets"))

        assert [r.name for r in rows] == ["c"]

    def test_scoped_get_hides_other_rows(self, memory: MemoryStore) -> None:
        assert asyncio.run(memory.where(user_id=2).get(PrivateWidget, "private_widgets", 1)) is None
        assert asyncio.run(memory.where(user_id=1).get(PrivateWidget, "private_widgets", 1)).name == "a"

    def test_scoped_handles_share_rows(self, memory: MemoryStore) -> None:
        scoped = memory.where(user_id=9)
        asyncio.run(scoped.create("private_widgets", PrivateWidget(user_id=1, name="d")))

        assert len(asyncio.run(memory.list(PrivateWidget, "private_widgets"))) == 4

    def test_update(self, memory: MemoryStore) -> None:
        updated = asyncio.run(memory.update("private_widgets", PrivateWidget(id=2, user_id=1, name="B")))

        assert updated.name == "B"
        assert asyncio.run(memory.get(PrivateWidget, "private_widgets", 2)).name == "B"

    def test_update_missing_row_raises(self, memory: MemoryStore) -> None:
        with pytest.raises(StoreError):
            asyncio.run(memory.update("private_widgets", PrivateWidget(id=42, name="x")))

    def test_delete(self, memory: MemoryStore) -> None:
        asyncio.run(memory.delete("private_widgets", PrivateWidget(id=3)))

        assert asyncio.run(memory.get(PrivateWidget, "private_widgets", 3)) is None

    def test_excluded_fields_are_stored(self) -> None:
        store = MemoryStore()
        store.add("users", User(id=1, name="a", password_hash="HASH"))

        assert asyncio.run(store.get(User, "users", 1)).password_hash == "HASH"

    def test_zero_identity_is_generated(self, memory: MemoryStore) -> None:
        created = asyncio.run(memory.create("private_widgets", PrivateWidget(id=0, name="zero")))

        assert created.id == 4
        assert asyncio.run(memory.get(PrivateWidget, "private_widgets", 0)) is None

    def test_returned_entities_are_copies(self, memory: MemoryStore) -> None:
        item = asyncio.run(memory.get(PrivateWidget, "private_widgets", 1))
        item.name = "mutated"

        assert asyncio.run(memory.get(PrivateWidget, "private_widgets", 1)).name == "a"

    def test_tables_are_separate(self, memory: MemoryStore) -> None:
        assert asyncio.run(memory.list(Widget, "widgets")) == []
