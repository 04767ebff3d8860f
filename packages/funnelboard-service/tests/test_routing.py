"""Edge routing tests: the pure decision function and the middleware in the app."""

from urllib.parse import parse_qs, urlsplit

import pytest
from _helpers import bearer
from fastapi import Request

from funnelboard_service.middleware.routing import (
    PUBLIC_ROUTES,
    RouteAction,
    RouteMatcher,
    RouteState,
    route_request,
)

BASE = "http://testserver"


# ---------------------------------------------------------------------------
# RouteMatcher
# ---------------------------------------------------------------------------


def test_exact_pattern_matches_only_itself():
    matcher = RouteMatcher(["/pricing"])
    assert matcher("/pricing")
    assert not matcher("/pricing/enterprise")
    assert not matcher("/pricingx")


def test_wildcard_pattern_matches_prefix():
    matcher = RouteMatcher(["/sign-in(.*)"])
    assert matcher("/sign-in")
    assert matcher("/sign-in/factor-one")
    assert not matcher("/account/sign-in")


def test_pattern_literals_are_escaped():
    matcher = RouteMatcher(["/a.b"])
    assert matcher("/a.b")
    assert not matcher("/axb")


@pytest.mark.parametrize(
    "path",
    ["/", "/pricing", "/invite/abc123", "/sign-up", "/sso-callback", "/api/webhooks/stripe"],
)
def test_public_routes(path):
    assert PUBLIC_ROUTES(path)


@pytest.mark.parametrize("path", ["/dashboard", "/api/workspaces", "/invite", "/api/webhooks"])
def test_non_public_routes(path):
    assert not PUBLIC_ROUTES(path)


# ---------------------------------------------------------------------------
# route_request
# ---------------------------------------------------------------------------


def test_public_route_passes_without_session():
    decision = route_request("/pricing", f"{BASE}/pricing", None, None)
    assert decision.state is RouteState.PUBLIC
    assert decision.action is RouteAction.PASS


def test_unauthenticated_redirects_to_sign_in_with_return_url():
    decision = route_request("/campaigns", f"{BASE}/campaigns?tab=2", None, "ws-1")

    assert decision.state is RouteState.UNAUTHENTICATED
    assert decision.action is RouteAction.REDIRECT
    location = urlsplit(decision.location)
    assert location.path == "/sign-in"
    assert parse_qs(location.query) == {"redirect_url": [f"{BASE}/campaigns?tab=2"]}


def test_signed_in_visit_to_sign_in_goes_to_dashboard():
    decision = route_request("/sign-in", f"{BASE}/sign-in", "user_1", None)
    assert decision.state is RouteState.AUTH_ROUTE_WHILE_AUTHENTICATED
    assert decision.location == f"{BASE}/dashboard"


def test_signed_in_visit_to_other_public_route_passes():
    decision = route_request("/pricing", f"{BASE}/pricing", "user_1", None)
    assert decision.action is RouteAction.PASS


def test_onboarding_passes_without_workspace():
    decision = route_request("/onboarding/step-2", f"{BASE}/onboarding/step-2", "user_1", None)
    assert decision.state is RouteState.ONBOARDING
    assert decision.action is RouteAction.PASS


def test_api_route_without_workspace_redirects_to_onboarding():
    decision = route_request("/api/workspaces", f"{BASE}/api/workspaces", "user_1", None)
    assert decision.state is RouteState.PROTECTED_NO_WORKSPACE
    assert decision.action is RouteAction.REDIRECT
    assert decision.location == f"{BASE}/onboarding"


def test_api_route_with_workspace_forwards():
    decision = route_request("/api/workspaces/x", f"{BASE}/api/workspaces/x", "user_1", "abc")
    assert decision.action is RouteAction.FORWARD
    assert decision.workspace_id == "abc"


def test_missing_workspace_redirects_to_onboarding():
    decision = route_request("/dashboard", f"{BASE}/dashboard", "user_1", None)
    assert decision.state is RouteState.PROTECTED_NO_WORKSPACE
    assert decision.location == f"{BASE}/onboarding"


def test_workspace_cookie_forwards_with_id():
    decision = route_request("/dashboard", f"{BASE}/dashboard", "user_1", "abc")
    assert decision.state is RouteState.PROTECTED_WITH_WORKSPACE
    assert decision.action is RouteAction.FORWARD
    assert decision.workspace_id == "abc"


# ---------------------------------------------------------------------------
# Middleware in the running app
# ---------------------------------------------------------------------------


@pytest.fixture
def routed_client(app, client):
    async def dashboard(request: Request) -> dict:
        return {"workspace_header": request.headers.get("x-workspace-id")}

    app.add_api_route("/dashboard", dashboard, methods=["GET"])
    return client


def test_webhook_path_passes_without_session(client):
    # Reaches the router, which has no such provider.
    resp = client.post("/api/webhooks/stripe", content=b"{}")
    assert resp.status_code == 404


def test_health_is_never_gated(client):
    resp = client.get("/health")
    assert resp.status_code == 200


def test_no_session_redirects_to_sign_in(routed_client):
    resp = routed_client.get("/dashboard")
    assert resp.status_code == 307
    location = urlsplit(resp.headers["location"])
    assert location.path == "/sign-in"
    assert parse_qs(location.query)["redirect_url"] == [f"{BASE}/dashboard"]


def test_invalid_token_counts_as_no_session(routed_client):
    resp = routed_client.get("/dashboard", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 307
    assert urlsplit(resp.headers["location"]).path == "/sign-in"


def test_signed_in_sign_in_redirects_to_dashboard(routed_client):
    resp = routed_client.get("/sign-in", headers=bearer("user_1"))
    assert resp.status_code == 307
    assert resp.headers["location"] == f"{BASE}/dashboard"


def test_no_workspace_cookie_redirects_to_onboarding(routed_client):
    resp = routed_client.get("/dashboard", headers=bearer("user_1"))
    assert resp.status_code == 307
    assert resp.headers["location"] == f"{BASE}/onboarding"


def test_workspace_cookie_is_injected_as_header(routed_client):
    routed_client.cookies.set("workspace_id", "abc")
    resp = routed_client.get("/dashboard", headers=bearer("user_1"))
    assert resp.status_code == 200
    assert resp.json() == {"workspace_header": "abc"}


def test_injected_header_overrides_client_header(routed_client):
    routed_client.cookies.set("workspace_id", "from-cookie")
    headers = {**bearer("user_1"), "X-Workspace-Id": "spoofed"}
    resp = routed_client.get("/dashboard", headers=headers)
    assert resp.json() == {"workspace_header": "from-cookie"}


def test_session_cookie_is_accepted(routed_client):
    token = bearer("user_1")["Authorization"].removeprefix("Bearer ")
    routed_client.cookies.set("__session", token)
    routed_client.cookies.set("workspace_id", "abc")
    resp = routed_client.get("/dashboard")
    assert resp.status_code == 200
