"""
Process-wide options and logging setup.

Options are built once at startup and shared by reference across every
pipeline. Nothing in the request path mutates them.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from restpipe.store.base import DataStore


class ConfigurationError(RuntimeError):
    pass


DEFAULT_URI_PREFIX = "/api"

# -1 silent, 0 errors only, 1 everything.
_LOG_LEVELS = {
    -1: logging.CRITICAL + 1,
    0: logging.ERROR,
    1: logging.DEBUG,
}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def normalize_uri_prefix(prefix: str | None) -> str:
    prefix = (prefix or "").strip() or DEFAULT_URI_PREFIX
    if not prefix.startswith("/"):
        prefix = "/" + prefix
    if prefix.endswith("/"):
        prefix = prefix[:-1]
    return prefix


@dataclass
class Options:
    """
    Settings that apply to all routes served by one RestApi.

    - store: data store used for every route. Required.
    - jwt_secret: signing secret, required only for the built-in authenticator.
    - login_model: principal lookup used by the built-in authenticator and
      the login endpoint. Usually set through RestApi.set_auth().
    - uri_prefix: defaults to /api.
    - log_level: -1 silent, 0 errors (default), 1 everything.
    """

    store: DataStore | None = None
    jwt_secret: str = ""
    login_model: Any = None
    uri_prefix: str = DEFAULT_URI_PREFIX
    log_level: int = 0

    @classmethod
    def from_env(cls, store: DataStore | None = None, **overrides: Any) -> Options:
        values: dict[str, Any] = {
            "store": store,
            "jwt_secret": os.environ.get("JWT_SECRET", "").strip(),
            "uri_prefix": os.environ.get("API_URI_PREFIX", "").strip() or DEFAULT_URI_PREFIX,
            "log_level": _env_int("API_LOG_LEVEL", 0),
        }
        values.update(overrides)
        return cls(**values)


def configure_logging(log_level: int) -> None:
    level = _LOG_LEVELS.get(max(-1, min(log_level, 1)), logging.ERROR)
    logger = logging.getLogger("restpipe")
    logger.setLevel(level)
    if not logger.handlers and log_level >= 0:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        logger.addHandler(handler)
