"""
Login models: the principal lookup used by the built-in authenticator.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ValidationError

from restpipe.core.naming import plural_snake_name
from restpipe.pipeline.capabilities import coerce_identity, identity_of
from restpipe.store.base import DataStore

from .security import verify_password


class LoginFailed(RuntimeError):
    pass


@runtime_checkable
class LoginModel(Protocol):
    """
    Both methods may be plain functions or coroutines.

    check_login_details gets the login request body (a JSON object) and
    returns the subject id to embed in the token. Return None or raise
    LoginFailed to refuse.

    get_by_id turns a token subject back into the principal handed to later
    stages, or None if there is no such user.
    """

    def check_login_details(self, payload: dict[str, Any]) -> Any:
        ...

    def get_by_id(self, subject: Any) -> Any:
        ...


class StoreLoginModel:
    """
    LoginModel backed by a DataStore table of users with bcrypt password hashes.

    The login body is expected to look like {"name": "...", "password": "..."}.
    """

    def __init__(
        self,
        store: DataStore,
        user_model: type[BaseModel],
        *,
        table: str | None = None,
        name_field: str = "name",
        password_field: str = "password_hash",
        name_key: str = "name",
        password_key: str = "password",
    ) -> None:
        self.store = store
        self.user_model = user_model
        self.table = table or plural_snake_name(user_model)
        self.name_field = name_field
        self.password_field = password_field
        self.name_key = name_key
        self.password_key = password_key

    async def check_login_details(self, payload: dict[str, Any]) -> Any:
        name = str(payload.get(self.name_key) or "").strip()
        password = str(payload.get(self.password_key) or "")
        if not name or not password:
            raise LoginFailed("Name and password are required.")

        users = await self.store.where(**{self.name_field: name}).list(self.user_model, self.table)
        for user in users:
            if verify_password(password, str(getattr(user, self.password_field, "") or "")):
                return identity_of(user)
        raise LoginFailed("Invalid name or password.")

    async def get_by_id(self, subject: Any) -> BaseModel | None:
        try:
            ident = coerce_identity(self.user_model, subject)
        except ValidationError:
            return None
        return await self.store.get(self.user_model, self.table, ident)
