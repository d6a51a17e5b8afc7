"""
Ready-made RouteConfigs for common access policies.

Each call returns a new RouteConfig, since a config is finalized (and frozen)
by the first RestApi that registers it.
"""

from __future__ import annotations

from typing import Any, Callable

from fastapi import status

from restpipe.pipeline.capabilities import Ownable, identity_of
from restpipe.pipeline.views import AuthorizeView, QueryScopeView, UploadCheckView

from .route_config import RouteConfig

IsAdmin = Callable[[Any], bool]


def _default_is_admin(principal: Any) -> bool:
    return bool(getattr(principal, "admin", False))


def only_authenticated(**overrides: Any) -> RouteConfig:
    return RouteConfig(use_default_auth=True, **overrides)


def only_admin(is_admin: IsAdmin = _default_is_admin, **overrides: Any) -> RouteConfig:
    def authorize(req: AuthorizeView) -> bool:
        if not is_admin(req.principal):
            return req.abort(status.HTTP_403_FORBIDDEN, "You need to be admin to do that")
        return True

    return RouteConfig(use_default_auth=True, authorize=authorize, **overrides)


def only_own_unless_admin(
    is_admin: IsAdmin = _default_is_admin,
    owner_field: str = "user_id",
    **overrides: Any,
) -> RouteConfig:
    """
    Non-admins only see, edit and delete rows whose `owner_field` is their own id,
    and can't upload rows owned by someone else.
    """

    def query_scope(req: QueryScopeView) -> bool:
        if not is_admin(req.principal):
            req.set_store(req.store.where(**{owner_field: identity_of(req.principal)}))
        return True

    def check_upload(req: UploadCheckView) -> bool:
        upload = req.upload
        if is_admin(req.principal) or not isinstance(upload, Ownable):
            return True
        if upload.owner_id() != identity_of(req.principal):
            return req.abort(status.HTTP_403_FORBIDDEN, "Only admin can change a user_id")
        return True

    return RouteConfig(use_default_auth=True, query_scope=query_scope, check_upload=check_upload, **overrides)
