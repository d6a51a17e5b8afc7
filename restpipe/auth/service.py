"""
Auth business logic: the default authenticate stage and the login endpoint.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Awaitable, Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse

from restpipe.core.awaitables import maybe_await
from restpipe.core.config import ConfigurationError
from restpipe.pipeline.views import AuthenticateView

from . import dependencies, schemas, security
from .repository import LoginFailed

if TYPE_CHECKING:
    from restpipe.core.config import Options

logger = logging.getLogger(__name__)


def _require_secret(options: Options) -> None:
    if not options.jwt_secret:
        raise ConfigurationError(
            "Can't do authentication safely unless you provide a random secret string as Options.jwt_secret."
        )


def default_authenticator(options: Options) -> Callable[[AuthenticateView], Awaitable[bool]]:
    """
    Build the authenticate stage used by RouteConfig(use_default_auth=True).

    Looks for `Authorization: Bearer <token>`, verifies it with the shared
    secret and resolves the `id` claim through options.login_model.
    """
    _require_secret(options)

    async def authenticate(req: AuthenticateView) -> bool:
        try:
            token = dependencies.get_bearer_token(req.request)
            claims = security.decode_token(token, options.jwt_secret)
        except security.TokenError as exc:
            logger.warning("Auth: token did not validate: %s", exc)
            return req.abort(status.HTTP_401_UNAUTHORIZED, "Unauthorized")

        login_model = options.login_model
        if login_model is None:
            logger.error("Auth: no login model configured. Call RestApi.set_auth() first.")
            return req.abort(status.HTTP_401_UNAUTHORIZED, "Unauthorized")

        try:
            principal = await maybe_await(login_model.get_by_id(claims["id"]))
        except LoginFailed:
            principal = None
        if principal is None:
            logger.warning("Cannot find logged in user id=%r", claims["id"])
            return req.abort(status.HTTP_401_UNAUTHORIZED, "Unauthorized")

        req.set_principal(principal)
        return True

    return authenticate


def login_handler(options: Options) -> Callable[[Request], Awaitable[Response]]:
    """
    Build the POST handler for the login path.

    The JSON body is handed to options.login_model.check_login_details; a
    subject id back means success and the client gets {"token": "..."}.
    """
    _require_secret(options)

    async def login(request: Request) -> Response:
        body = await request.body()
        try:
            payload = json.loads(body or b"")
        except ValueError:
            logger.error("Received malformed JSON login body")
            return JSONResponse(status_code=422, content={"detail": "Malformed JSON"})
        if not isinstance(payload, dict):
            return JSONResponse(status_code=422, content={"detail": "Login body must be a JSON object."})

        try:
            subject = await maybe_await(options.login_model.check_login_details(payload))
        except LoginFailed as exc:
            logger.warning("Login failed: %s", exc)
            subject = None
        if subject is None:
            return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": "Login failed"})

        logger.info("Logged in user %r", subject)
        token = security.build_token(subject, options.jwt_secret)
        return JSONResponse(content=schemas.TokenResponse(token=token).model_dump())

    return login
