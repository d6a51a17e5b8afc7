"""
Per-request state threaded through every stage of a pipeline.

A RequestContext is created fresh for each incoming request, mutated by the
stages in order, and dropped once the response is returned. Stages never see
it directly; they get one of the views in `views.py`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

if TYPE_CHECKING:
    from restpipe.core.config import Options
    from restpipe.store.base import DataStore


class Verb(str, Enum):
    GET_ITEM = "get_item"
    GET_INDEX = "get_index"
    POST = "post"
    PATCH = "patch"
    DELETE = "delete"

    @property
    def method(self) -> str:
        if self in (Verb.GET_ITEM, Verb.GET_INDEX):
            return "GET"
        return self.value.upper()

    @property
    def is_item(self) -> bool:
        return self not in (Verb.GET_INDEX, Verb.POST)


@dataclass(eq=False)
class RequestContext:
    verb: Verb
    model_type: type[BaseModel]
    table_name: str
    options: Options
    request: Request
    # Read lookups use this handle; query_scope stages may replace it.
    store: DataStore
    uploaded: Any = None
    result: Any = None
    principal: Any = None
    # Free-form slot for user stages to pass things along.
    data: Any = None
    response: Response | None = None

    @property
    def responded(self) -> bool:
        return self.response is not None

    def param(self, key: str) -> str | None:
        value = self.request.path_params.get(key)
        return None if value is None else str(value)

    def write(self, response: Response) -> None:
        if self.response is not None:
            raise RuntimeError("A response has already been written for this request.")
        self.response = response

    def write_json(self, status_code: int, content: Any) -> None:
        self.write(JSONResponse(status_code=status_code, content=content))

    def write_error(self, status_code: int, detail: str) -> None:
        self.write_json(status_code, {"detail": detail})
