"""
Request helpers for the built-in authenticator.
"""

from __future__ import annotations

from fastapi import Request

from .security import TokenError


def extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise TokenError("Missing Authorization header.")

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise TokenError("Invalid Authorization header format.")

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise TokenError("Authorization must be: Bearer <token>.")
    return token


def get_bearer_token(request: Request) -> str:
    return extract_bearer_token(request.headers.get("authorization"))
