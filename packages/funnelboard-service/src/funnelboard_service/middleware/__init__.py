from funnelboard_service.middleware.routing import (
    RouteMatcher,
    WorkspaceRoutingMiddleware,
    route_request,
)

__all__ = ["RouteMatcher", "WorkspaceRoutingMiddleware", "route_request"]
