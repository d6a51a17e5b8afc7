"""
restpipe: CRUD HTTP routes for pydantic models, served through an ordered
pipeline of pluggable stages (authenticate, authorize, query_scope,
check_upload, edit_result) around built-in fetch/persist/serialize steps.
"""

from restpipe.app import RestApi
from restpipe.auth.repository import LoginFailed, LoginModel, StoreLoginModel
from restpipe.core.config import ConfigurationError, Options
from restpipe.pipeline import (
    AuthenticateView,
    AuthorizeView,
    Ownable,
    QueryScopeView,
    ResultEditView,
    UploadCheckView,
    Validatable,
)
from restpipe.routes import RouteConfig, only_admin, only_authenticated, only_own_unless_admin
from restpipe.store import DataStore, MemoryStore, PostgresStore, StoreError

__version__ = "0.1.0"

__all__ = [
    "AuthenticateView",
    "AuthorizeView",
    "ConfigurationError",
    "DataStore",
    "LoginFailed",
    "LoginModel",
    "MemoryStore",
    "Options",
    "Ownable",
    "PostgresStore",
    "QueryScopeView",
    "RestApi",
    "ResultEditView",
    "RouteConfig",
    "StoreError",
    "StoreLoginModel",
    "UploadCheckView",
    "Validatable",
    "only_admin",
    "only_authenticated",
    "only_own_unless_admin",
]
