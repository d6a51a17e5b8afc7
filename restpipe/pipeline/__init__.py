"""
The request pipeline: per-request context, capability views, built-in stages
and the engine that runs them in order.
"""

from .capabilities import Ownable, Validatable, identity_field
from .context import RequestContext, Verb
from .engine import STAGE_ORDER, Pipeline
from .views import AuthenticateView, AuthorizeView, QueryScopeView, ResultEditView, UploadCheckView

__all__ = [
    "STAGE_ORDER",
    "AuthenticateView",
    "AuthorizeView",
    "Ownable",
    "Pipeline",
    "QueryScopeView",
    "RequestContext",
    "ResultEditView",
    "UploadCheckView",
    "Validatable",
    "Verb",
    "identity_field",
]
