from .presets import only_admin, only_authenticated, only_own_unless_admin
from .route_config import RouteConfig

__all__ = ["RouteConfig", "only_admin", "only_authenticated", "only_own_unless_admin"]
