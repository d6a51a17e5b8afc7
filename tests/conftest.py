"""
Pytest Configuration and Shared Fixtures.

Sample models, a seeded in-memory store and helpers for building a RestApi
around it.
"""

from __future__ import annotations

from typing import Callable

import pytest
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from restpipe import MemoryStore, Options, RestApi, StoreLoginModel
from restpipe.auth import security

JWT_SECRET = "test-secret-that-is-long-enough-for-hs256"


class Widget(BaseModel):
    id: int | None = None
    name: str = ""


class User(BaseModel):
    id: int | None = None
    name: str = ""
    password_hash: str = Field(default="", exclude=True)
    admin: bool = False


class Address(BaseModel):
    city: str = ""
    zip: str = ""


class Person(BaseModel):
    id: int | None = None
    name: str = ""
    address: Address = Field(default_factory=Address)
    tags: list[str] = Field(default_factory=list)


class PrivateWidget(BaseModel):
    id: int | None = None
    user_id: int | None = None
    name: str = ""

    def owner_id(self) -> int | None:
        return self.user_id


class VerifiedWidget(BaseModel):
    id: int | None = None
    must_be_hello_world: str = ""

    def validate_upload(self) -> dict[str, str] | None:
        if self.must_be_hello_world == "Hello World!!":
            return None
        return {"must_be_hello_world": 'Is not equal to "Hello World!!"'}


@pytest.fixture
def store() -> MemoryStore:
    """Memory store seeded with three widgets and two users."""
    store = MemoryStore()
    for i in (1, 2, 3):
        store.add("widgets", Widget(id=i, name=f"Widget {i}"))
    store.add("users", User(id=1, name="admin", password_hash=security.hash_password("password"), admin=True))
    store.add("users", User(id=2, name="user2", password_hash=security.hash_password("user2pass")))
    return store


@pytest.fixture
def make_api(store: MemoryStore) -> Callable[..., RestApi]:
    def _make(**overrides) -> RestApi:
        values = {"store": store, "jwt_secret": JWT_SECRET, "log_level": -1}
        values.update(overrides)
        return RestApi(Options(**values))

    return _make


@pytest.fixture
def api(make_api) -> RestApi:
    """RestApi with login at /api/login and no routes yet."""
    api = make_api()
    api.set_auth(StoreLoginModel(api.store, User), "login")
    return api


@pytest.fixture
def client(api: RestApi) -> TestClient:
    return TestClient(api.app)


@pytest.fixture
def token_for() -> Callable[[int], str]:
    def _token(user_id: int) -> str:
        return security.build_token(user_id, JWT_SECRET)

    return _token


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
