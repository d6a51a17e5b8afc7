"""
Auth security helpers.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import bcrypt
import jwt

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
TOKEN_TTL_S = 60 * 60


class TokenError(RuntimeError):
    pass


def now_epoch_s() -> int:
    return int(time.time())


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise ValueError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def build_token(subject: Any, secret: str, *, issued_at: int | None = None) -> str:
    """
    Sign a token for `subject` that expires one hour after `issued_at`.
    """
    if not secret:
        raise TokenError("Can't sign tokens without a secret.")
    issued_at = now_epoch_s() if issued_at is None else issued_at
    payload = {
        "id": subject,
        "exp": issued_at + TOKEN_TTL_S,
    }
    logger.info("Signing token for id=%r expiring at %s", subject, payload["exp"])
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, secret: str, *, now: int | None = None) -> dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    A token is accepted up to and including its `exp` second and rejected
    after it.
    """
    raw = (token or "").strip()
    if not raw:
        raise TokenError("Token is empty.")

    try:
        # Only HMAC is accepted; "none" and asymmetric algorithms are rejected here.
        claims = jwt.decode(
            raw,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"verify_exp": False, "require": ["exp", "id"]},
        )
    except jwt.InvalidTokenError as exc:
        raise TokenError("Invalid token.") from exc

    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        raise TokenError("Token expiry is not a number.")
    now = now_epoch_s() if now is None else now
    if now > exp:
        raise TokenError("Token has expired.")
    return claims
