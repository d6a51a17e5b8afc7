"""
The pipeline engine.

For every verb there is one fixed, ordered list of stages. A Pipeline runs
that list against a fresh RequestContext and stops at the first stage that
returns False (or that wrote a response). Optional stages come from the
RouteConfig; a stage that isn't configured is left out of the list.

    GET item:  authenticate, authorize, query_scope, fetch_by_id, edit_result, serialize
    GET index: authenticate, authorize, query_scope, fetch_all, edit_result, serialize
    POST:      authenticate, authorize, parse_upload, check_upload, create, edit_result, serialize
    PATCH:     authenticate, authorize, query_scope, fetch_by_id, merge_upload, check_upload,
               update, edit_result, serialize
    DELETE:    authenticate, authorize, query_scope, fetch_by_id, delete, edit_result, serialize
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from fastapi import Request, Response
from pydantic import BaseModel

from restpipe.core.awaitables import maybe_await
from restpipe.core.naming import plural_snake_name

from . import stages
from .context import RequestContext, Verb
from .views import AuthenticateView, AuthorizeView, QueryScopeView, ResultEditView, UploadCheckView

if TYPE_CHECKING:
    from restpipe.core.config import Options
    from restpipe.routes.route_config import RouteConfig

logger = logging.getLogger(__name__)

STAGE_ORDER: dict[Verb, tuple[str, ...]] = {
    Verb.GET_ITEM: ("authenticate", "authorize", "query_scope", "fetch_by_id", "edit_result", "serialize"),
    Verb.GET_INDEX: ("authenticate", "authorize", "query_scope", "fetch_all", "edit_result", "serialize"),
    Verb.POST: ("authenticate", "authorize", "parse_upload", "check_upload", "create", "edit_result", "serialize"),
    Verb.PATCH: (
        "authenticate",
        "authorize",
        "query_scope",
        "fetch_by_id",
        "merge_upload",
        "check_upload",
        "update",
        "edit_result",
        "serialize",
    ),
    Verb.DELETE: ("authenticate", "authorize", "query_scope", "fetch_by_id", "delete", "edit_result", "serialize"),
}

BUILTIN_STAGES: dict[str, Callable[[RequestContext], Awaitable[bool]]] = {
    "fetch_by_id": stages.fetch_by_id,
    "fetch_all": stages.fetch_all,
    "parse_upload": stages.parse_upload,
    "merge_upload": stages.merge_upload,
    "create": stages.create,
    "update": stages.update,
    "delete": stages.delete,
    "serialize": stages.serialize,
}

STAGE_VIEWS: dict[str, type] = {
    "authenticate": AuthenticateView,
    "authorize": AuthorizeView,
    "query_scope": QueryScopeView,
    "check_upload": UploadCheckView,
    "edit_result": ResultEditView,
}

# Written when an optional stage returns False without answering the client
# itself. query_scope and edit_result views can't write, so they always land here.
FALLBACK_ERRORS: dict[str, tuple[int, str]] = {
    "authenticate": (401, "Unauthorized"),
    "authorize": (403, "Forbidden"),
    "query_scope": (404, "Not Found"),
    "check_upload": (422, "Upload rejected."),
    "edit_result": (404, "Not Found"),
}


@dataclass(frozen=True)
class Stage:
    name: str
    run: Callable[[RequestContext], Awaitable[bool]]
    optional: bool = False


def _optional_stage(name: str, callback: Callable[[Any], Any]) -> Stage:
    view_type = STAGE_VIEWS[name]

    async def run(ctx: RequestContext) -> bool:
        return bool(await maybe_await(callback(view_type(ctx))))

    return Stage(name=name, run=run, optional=True)


def build_stages(verb: Verb, config: RouteConfig) -> tuple[Stage, ...]:
    built: list[Stage] = []
    for name in STAGE_ORDER[verb]:
        if name in BUILTIN_STAGES:
            built.append(Stage(name=name, run=BUILTIN_STAGES[name]))
            continue
        callback = getattr(config, name)
        if callback is not None:
            built.append(_optional_stage(name, callback))
    return tuple(built)


class Pipeline:
    """
    The request handler for one (model, verb) pair.

    A stage may also raise (e.g. fastapi.HTTPException); that propagates to
    the router untouched and no later stage runs.
    """

    def __init__(
        self,
        verb: Verb,
        model_type: type[BaseModel],
        config: RouteConfig,
        options: Options,
        *,
        table_name: str | None = None,
    ) -> None:
        if not config.finalized:
            raise RuntimeError("RouteConfig must be finalized before building a Pipeline.")
        self.verb = verb
        self.model_type = model_type
        self.config = config
        self.options = options
        self.table_name = table_name or plural_snake_name(model_type)
        self.stages = build_stages(verb, config)

    @property
    def stage_names(self) -> tuple[str, ...]:
        return tuple(s.name for s in self.stages)

    def new_context(self, request: Request) -> RequestContext:
        return RequestContext(
            verb=self.verb,
            model_type=self.model_type,
            table_name=self.table_name,
            options=self.options,
            request=request,
            store=self.options.store,
        )

    async def run(self, ctx: RequestContext) -> Response:
        for stage in self.stages:
            ok = await stage.run(ctx)
            if ok and not ctx.responded:
                continue
            if not ctx.responded:
                status_code, detail = FALLBACK_ERRORS.get(stage.name, (422, "Unprocessable Entity"))
                ctx.write_error(status_code, detail)
            if ok and stage.name == "serialize":
                logger.info("Successful %s %s", self.verb.method, self.model_type.__name__)
            else:
                logger.warning(
                    "%s %s stopped at %s with status %s",
                    self.verb.method,
                    self.model_type.__name__,
                    stage.name,
                    ctx.response.status_code,
                )
            break
        return ctx.response

    async def handle(self, request: Request) -> Response:
        return await self.run(self.new_context(request))
