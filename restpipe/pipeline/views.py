"""
Capability views handed to user stages.

Each stage kind gets the narrowest view that lets it do its job:

- AuthenticateView: request info, response write, set_principal
- AuthorizeView:    request info, principal, response write
- QueryScopeView:   request info, principal, store get/set (no response write)
- UploadCheckView:  request info, principal, upload, response write
- ResultEditView:   request info, principal, upload, result get/set

None of them expose Options: it holds the unscoped store and the signing
secret.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request, Response

from restpipe.store.base import DataStore

from .context import RequestContext, Verb


class _View:
    __slots__ = ("_ctx",)

    def __init__(self, ctx: RequestContext) -> None:
        self._ctx = ctx

    @property
    def verb(self) -> Verb:
        return self._ctx.verb

    @property
    def method(self) -> str:
        return self._ctx.verb.method

    @property
    def request(self) -> Request:
        return self._ctx.request

    def param(self, key: str) -> str | None:
        """Path parameter `key` (e.g. "id" or a prefix parameter), or None."""
        return self._ctx.param(key)

    def get_data(self) -> Any:
        return self._ctx.data

    def set_data(self, data: Any) -> None:
        self._ctx.data = data


class _ResponseWriter:
    __slots__ = ()

    def respond(self, response: Response) -> bool:
        """
        Write `response` as the final answer for this request.

        Returns False so a stage can end with `return view.respond(...)`.
        """
        self._ctx.write(response)
        return False

    def abort(self, status_code: int, detail: str) -> bool:
        self._ctx.write_error(status_code, detail)
        return False


class _PrincipalReader:
    __slots__ = ()

    @property
    def principal(self) -> Any:
        return self._ctx.principal


class AuthenticateView(_ResponseWriter, _View):
    __slots__ = ()

    def set_principal(self, principal: Any) -> None:
        self._ctx.principal = principal


class AuthorizeView(_PrincipalReader, _ResponseWriter, _View):
    __slots__ = ()


class QueryScopeView(_PrincipalReader, _View):
    __slots__ = ()

    @property
    def store(self) -> DataStore:
        return self._ctx.store

    def set_store(self, store: DataStore) -> None:
        self._ctx.store = store


class UploadCheckView(_PrincipalReader, _ResponseWriter, _View):
    __slots__ = ()

    @property
    def upload(self) -> Any:
        return self._ctx.uploaded


class ResultEditView(_PrincipalReader, _View):
    __slots__ = ()

    @property
    def upload(self) -> Any:
        return self._ctx.uploaded

    @property
    def result(self) -> Any:
        return self._ctx.result

    def set_result(self, result: Any) -> None:
        self._ctx.result = result
