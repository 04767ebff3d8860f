"""Edge routing middleware.

Runs before every handler and enforces the session and workspace-selection
rules for page and API routes:

* public routes pass through untouched
* no session: redirect to sign-in with the requested URL as return target
* signed in but visiting sign-in/up: redirect to the dashboard
* onboarding routes pass through (they pick a workspace themselves)
* no workspace cookie: redirect to onboarding
* otherwise forward, with the workspace id injected as a request header

The decision logic lives in :func:`route_request`, a pure function, so it
can be exercised without any HTTP plumbing.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode

import structlog
from starlette.datastructures import URL, MutableHeaders
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from funnelboard_service.auth.session import get_external_user_id
from funnelboard_service.settings import settings

log = structlog.get_logger(__name__)

_WILDCARD = "(.*)"


class RouteMatcher:
    """Matches request paths against exact or ``prefix(.*)`` patterns."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = tuple(patterns)
        self._regexes = tuple(re.compile(self._to_regex(p)) for p in self.patterns)

    @staticmethod
    def _to_regex(pattern: str) -> str:
        literal_parts = pattern.split(_WILDCARD)
        return "^" + "(.*)".join(re.escape(part) for part in literal_parts) + "$"

    def matches(self, path: str) -> bool:
        return any(regex.match(path) for regex in self._regexes)

    __call__ = matches


PUBLIC_ROUTES = RouteMatcher([
    "/",
    "/pricing",
    "/invite/(.*)",
    "/sign-in(.*)",
    "/sign-up(.*)",
    "/sso-callback(.*)",
    "/api/webhooks/(.*)",
])

AUTH_ROUTES = RouteMatcher([
    "/sign-in(.*)",
    "/sign-up(.*)",
    "/sso-callback(.*)",
])

# Signed in but no workspace selected yet.
ONBOARDING_ROUTES = RouteMatcher(["/onboarding(.*)"])

# Framework internals, static files and probes never reach the gate.
_SKIPPED_PATH = re.compile(
    r"^/(?:_next/|health(?:/|$)|docs(?:/|$)|openapi\.json$)"
    r"|\.(?:html?|css|js|jpe?g|webp|png|gif|svg|ttf|woff2?|ico|csv|docx?|xlsx?|zip|webmanifest)$"
)


class RouteState(str, Enum):
    PUBLIC = "public"
    UNAUTHENTICATED = "unauthenticated"
    AUTH_ROUTE_WHILE_AUTHENTICATED = "auth_route_while_authenticated"
    ONBOARDING = "onboarding"
    PROTECTED_NO_WORKSPACE = "protected_no_workspace"
    PROTECTED_WITH_WORKSPACE = "protected_with_workspace"


class RouteAction(str, Enum):
    PASS = "pass"
    REDIRECT = "redirect"
    FORWARD = "forward"


@dataclass(frozen=True)
class RoutingDecision:
    state: RouteState
    action: RouteAction
    location: str | None = None
    workspace_id: str | None = None


def route_request(
    path: str,
    url: str,
    user_id: str | None,
    workspace_cookie: str | None,
) -> RoutingDecision:
    """Decide what happens to one request. First matching state wins."""
    # A signed-in visit to sign-in/up falls through to the auth-route redirect.
    if PUBLIC_ROUTES(path) and not (user_id and AUTH_ROUTES(path)):
        return RoutingDecision(RouteState.PUBLIC, RouteAction.PASS)

    if not user_id:
        sign_in = URL(url).replace(
            path=settings.sign_in_path,
            query=urlencode({settings.redirect_param: url}),
            fragment="",
        )
        return RoutingDecision(RouteState.UNAUTHENTICATED, RouteAction.REDIRECT, str(sign_in))

    if AUTH_ROUTES(path):
        dashboard = URL(url).replace(path=settings.dashboard_path, query="", fragment="")
        return RoutingDecision(
            RouteState.AUTH_ROUTE_WHILE_AUTHENTICATED, RouteAction.REDIRECT, str(dashboard)
        )

    if ONBOARDING_ROUTES(path):
        return RoutingDecision(RouteState.ONBOARDING, RouteAction.PASS)

    if not workspace_cookie:
        onboarding = URL(url).replace(path=settings.onboarding_path, query="", fragment="")
        return RoutingDecision(
            RouteState.PROTECTED_NO_WORKSPACE, RouteAction.REDIRECT, str(onboarding)
        )

    return RoutingDecision(
        RouteState.PROTECTED_WITH_WORKSPACE, RouteAction.FORWARD, workspace_id=workspace_cookie
    )


class WorkspaceRoutingMiddleware(BaseHTTPMiddleware):
    """Applies :func:`route_request` to every incoming HTTP request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if _SKIPPED_PATH.search(path):
            return await call_next(request)

        user_id = get_external_user_id(request.headers, request.cookies)
        decision = route_request(
            path=path,
            url=str(request.url),
            user_id=user_id,
            workspace_cookie=request.cookies.get(settings.workspace_cookie_name),
        )

        if decision.action is RouteAction.REDIRECT:
            log.debug(
                "routing_redirect",
                path=path,
                state=decision.state.value,
                location=decision.location,
            )
            return RedirectResponse(decision.location, status_code=307)

        if decision.action is RouteAction.FORWARD:
            # Rewrites the scope's header list; downstream sees the injected value.
            headers = MutableHeaders(scope=request.scope)
            headers[settings.workspace_header_name] = decision.workspace_id

        return await call_next(request)
