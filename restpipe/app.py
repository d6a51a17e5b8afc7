"""
RestApi: registers a CRUD pipeline per (model, verb) on a FastAPI app.

    api = RestApi(Options(store=MemoryStore(), jwt_secret=secret))
    api.set_auth(StoreLoginModel(store, User), "login")
    api.add_default_routes(Widget)
    api.add_default_routes(User, only_authenticated(), only_admin())

With the default prefix, add_default_routes(SecretWidget) serves:

- GET    /api/secret_widgets       all items
- GET    /api/secret_widgets/{id}  one item, or 404
- POST   /api/secret_widgets       create, or 422 if the body doesn't parse
- PATCH  /api/secret_widgets/{id}  edit, or 404/422
- DELETE /api/secret_widgets/{id}  delete, returning the deleted item
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Iterable

from fastapi import FastAPI
from pydantic import BaseModel

from restpipe.auth import service as auth_service
from restpipe.core.config import ConfigurationError, Options, configure_logging, normalize_uri_prefix
from restpipe.core.naming import plural_snake_name
from restpipe.main import build_app
from restpipe.pipeline.context import Verb
from restpipe.pipeline.engine import Pipeline
from restpipe.routes.route_config import RouteConfig
from restpipe.store.base import DataStore

logger = logging.getLogger(__name__)

MAX_ROUTE_CONFIGS = 3


def _normalize_route_prefix(prefix: str) -> str:
    prefix = (prefix or "").strip().rstrip("/")
    if prefix and not prefix.startswith("/"):
        prefix = "/" + prefix
    return prefix


class RestApi:
    """
    ASGI app serving REST routes for the models it has been given.

    Options must carry a store. The built-in authenticator additionally needs
    Options.jwt_secret and a login model (see set_auth).
    """

    def __init__(self, options: Options, *, cors_origins: Iterable[str] = ()) -> None:
        if options.store is None:
            raise ConfigurationError("Must provide a store in the Options for a new RestApi.")
        self.options = replace(options, uri_prefix=normalize_uri_prefix(options.uri_prefix))
        configure_logging(self.options.log_level)
        self.app: FastAPI = build_app(self, cors_origins=cors_origins)
        self.pipelines: list[Pipeline] = []

    @property
    def store(self) -> DataStore:
        return self.options.store

    async def __call__(self, scope, receive, send) -> None:
        await self.app(scope, receive, send)

    def default_authenticator(self) -> Callable[..., Any]:
        return auth_service.default_authenticator(self.options)

    def set_auth(self, login_model: Any, path: str = "login") -> str:
        """
        Use `login_model` for the built-in authenticator and add a login route
        at POST {uri_prefix}/{path}. Returns the login path.
        """
        if not self.options.jwt_secret:
            raise ConfigurationError(
                "Can't do authorisation safely unless you provide a random secret string as Options.jwt_secret."
            )
        self.options.login_model = login_model
        login_path = f"{self.options.uri_prefix}/{path.strip('/')}"
        logger.info("Setting login path to %s", login_path)
        self.app.add_api_route(
            login_path,
            auth_service.login_handler(self.options),
            methods=["POST"],
            response_model=None,
        )
        return login_path

    def add_default_routes(self, model_type: type[BaseModel], *configs: RouteConfig) -> None:
        """
        Add GET (item and index), POST, PATCH and DELETE routes for `model_type`.

        With one config it applies to every route. With two, the first applies
        to GET routes and the second to POST/PATCH/DELETE. A third applies to
        DELETE only.
        """
        if len(configs) > MAX_ROUTE_CONFIGS:
            raise ConfigurationError(
                f"add_default_routes called with {len(configs)} RouteConfigs; at most {MAX_ROUTE_CONFIGS} allowed."
            )
        view_config = configs[0] if len(configs) > 0 else RouteConfig()
        edit_config = configs[1] if len(configs) > 1 else view_config
        delete_config = configs[2] if len(configs) > 2 else edit_config

        self.add_get_route(model_type, view_config)
        self.add_index_route(model_type, view_config)
        self.add_post_route(model_type, edit_config)
        self.add_patch_route(model_type, edit_config)
        self.add_delete_route(model_type, delete_config)

    def add_get_route(self, model_type: type[BaseModel], config: RouteConfig | None = None) -> Pipeline:
        return self._add_route(Verb.GET_ITEM, model_type, config)

    def add_index_route(self, model_type: type[BaseModel], config: RouteConfig | None = None) -> Pipeline:
        return self._add_route(Verb.GET_INDEX, model_type, config)

    def add_post_route(self, model_type: type[BaseModel], config: RouteConfig | None = None) -> Pipeline:
        return self._add_route(Verb.POST, model_type, config)

    def add_patch_route(self, model_type: type[BaseModel], config: RouteConfig | None = None) -> Pipeline:
        return self._add_route(Verb.PATCH, model_type, config)

    def add_delete_route(self, model_type: type[BaseModel], config: RouteConfig | None = None) -> Pipeline:
        return self._add_route(Verb.DELETE, model_type, config)

    def make_path(self, model_type: type[BaseModel], config: RouteConfig) -> str:
        name = config.uri_model_name.strip("/") or plural_snake_name(model_type)
        return f"{self.options.uri_prefix}{_normalize_route_prefix(config.prefix)}/{name}"

    def _add_route(self, verb: Verb, model_type: type[BaseModel], config: RouteConfig | None) -> Pipeline:
        config = (config if config is not None else RouteConfig()).finalize(self)
        path = self.make_path(model_type, config)
        if verb.is_item:
            path += "/{id}"

        pipeline = Pipeline(verb, model_type, config, self.options)
        logger.info("Adding %s route for %s at %s", verb.value.upper(), model_type.__name__, path)
        self.app.add_api_route(
            path,
            pipeline.handle,
            methods=[verb.method],
            response_model=None,
            name=f"{verb.value}_{pipeline.table_name}",
        )
        self.pipelines.append(pipeline)
        return pipeline
