"""
Per-route-group configuration.

A RouteConfig can be shared by several routes (AddDefaultRoutes style) and is
finalized once, when the first route using it is registered. After that it
is read-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Union

from restpipe.core.config import ConfigurationError
from restpipe.pipeline.views import (
    AuthenticateView,
    AuthorizeView,
    QueryScopeView,
    ResultEditView,
    UploadCheckView,
)

if TYPE_CHECKING:
    from restpipe.app import RestApi

StageResult = Union[bool, Awaitable[bool]]

Authenticator = Callable[[AuthenticateView], StageResult]
Authorizer = Callable[[AuthorizeView], StageResult]
QueryScoper = Callable[[QueryScopeView], StageResult]
UploadChecker = Callable[[UploadCheckView], StageResult]
ResultEditor = Callable[[ResultEditView], StageResult]


@dataclass(eq=False)
class RouteConfig:
    """
    Stage callbacks and URL overrides for a group of routes.

    prefix
        Inserted between the API prefix and the model path. With
        prefix="/department/{dept_id}" the Employee index is served at
        /api/department/{dept_id}/employees. Scoping by dept_id is up to a
        query_scope callback.
    uri_model_name
        Replaces the derived path segment (UserType -> user_types).

    Callbacks run in this order, each returning True to continue:

    authenticate -> authorize -> query_scope -> (db lookup) -> check_upload
    -> (db write) -> edit_result

    use_default_auth installs the built-in token authenticator instead of a
    custom `authenticate`. Setting both is a ConfigurationError.
    """

    prefix: str = ""
    uri_model_name: str = ""
    use_default_auth: bool = False
    authenticate: Authenticator | None = None
    authorize: Authorizer | None = None
    query_scope: QueryScoper | None = None
    check_upload: UploadChecker | None = None
    edit_result: ResultEditor | None = None
    _finalized: bool = field(default=False, init=False, repr=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_finalized", False):
            raise ConfigurationError(f"RouteConfig is finalized; can't set {name!r}.")
        object.__setattr__(self, name, value)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def finalize(self, api: RestApi) -> RouteConfig:
        if self._finalized:
            return self
        if self.use_default_auth:
            if self.authenticate is not None:
                raise ConfigurationError(
                    "Set either RouteConfig.authenticate or RouteConfig.use_default_auth, but not both."
                )
            self.authenticate = api.default_authenticator()
        object.__setattr__(self, "_finalized", True)
        return self
