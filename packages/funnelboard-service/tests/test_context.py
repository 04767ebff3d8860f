"""Workspace context resolver tests."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest
from _helpers import InMemoryStore, InMemoryWorkspaceRepo

from funnelboard_service.auth.context import (
    CookieSource,
    HeaderSource,
    get_workspace_context,
    require_workspace_context,
    resolve_workspace_id,
)
from funnelboard_service.auth.errors import AccessDeniedError, WorkspaceContextRequiredError


@pytest.fixture
def seeded(store: InMemoryStore):
    user = store.add_user(clerk_id="ext_ana", email="ana@example.com", global_role="client")
    workspace = store.add_workspace(name="Acme", slug="acme")
    return store, user, workspace


def _cookie(workspace) -> dict[str, str]:
    return {"workspace_id": str(workspace.id)}


# ---------------------------------------------------------------------------
# Workspace id sources
# ---------------------------------------------------------------------------


def test_header_wins_over_cookie():
    headers = {"x-workspace-id": "from-header"}
    assert resolve_workspace_id(headers, {"workspace_id": "from-cookie"}) == "from-header"


def test_cookie_used_without_header():
    assert resolve_workspace_id({}, {"workspace_id": "from-cookie"}) == "from-cookie"


def test_empty_header_falls_back_to_cookie():
    headers = {"x-workspace-id": ""}
    assert resolve_workspace_id(headers, {"workspace_id": "from-cookie"}) == "from-cookie"


def test_blank_header_falls_back_to_cookie():
    headers = {"x-workspace-id": "   "}
    assert resolve_workspace_id(headers, {"workspace_id": " from-cookie "}) == "from-cookie"


def test_no_source_yields_none():
    assert resolve_workspace_id({}, {}) is None


def test_custom_source_order():
    sources = (CookieSource("workspace_id"), HeaderSource("x-workspace-id"))
    assert resolve_workspace_id({"x-workspace-id": "h"}, {"workspace_id": "c"}, sources) == "c"


# ---------------------------------------------------------------------------
# Unresolved (None) outcomes
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_no_external_id_returns_none(seeded, workspace_repo):
    _, _, workspace = seeded
    assert await get_workspace_context(None, {}, _cookie(workspace), workspace_repo) is None
    assert workspace_repo.lookups == []


@pytest.mark.asyncio
async def test_unknown_user_returns_none(seeded, workspace_repo):
    _, _, workspace = seeded
    assert await get_workspace_context("ext_nobody", {}, _cookie(workspace), workspace_repo) is None


@pytest.mark.asyncio
async def test_no_workspace_selected_returns_none(seeded, workspace_repo):
    assert await get_workspace_context("ext_ana", {}, {}, workspace_repo) is None
    assert workspace_repo.lookups == ["user"]


@pytest.mark.asyncio
async def test_unknown_workspace_returns_none(seeded, workspace_repo):
    cookies = {"workspace_id": str(uuid.uuid4())}
    assert await get_workspace_context("ext_ana", {}, cookies, workspace_repo) is None


@pytest.mark.asyncio
async def test_malformed_workspace_id_returns_none(seeded, workspace_repo):
    cookies = {"workspace_id": "not-a-uuid"}
    assert await get_workspace_context("ext_ana", {}, cookies, workspace_repo) is None
    assert "workspace" not in workspace_repo.lookups


# ---------------------------------------------------------------------------
# Resolved contexts
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_member_gets_membership_role(seeded, workspace_repo):
    store, user, workspace = seeded
    store.add_member(workspace, user, role="editor")

    ctx = await get_workspace_context("ext_ana", {}, _cookie(workspace), workspace_repo)

    assert ctx is not None
    assert ctx.role == "editor"
    assert ctx.is_global_owner is False
    assert ctx.user.id == user.id
    assert ctx.user.external_id == "ext_ana"
    assert ctx.workspace.slug == "acme"


@pytest.mark.asyncio
async def test_global_owner_short_circuits_membership(store, workspace_repo):
    store.add_user(clerk_id="ext_boss", email="boss@example.com", global_role="owner")
    workspace = store.add_workspace(name="Client Co", slug="client-co")

    ctx = await get_workspace_context("ext_boss", {}, _cookie(workspace), workspace_repo)

    assert ctx is not None
    assert ctx.is_global_owner is True
    assert ctx.role == "owner"
    assert "membership" not in workspace_repo.lookups


@pytest.mark.asyncio
async def test_global_owner_role_overrides_stored_membership(store, workspace_repo):
    boss = store.add_user(clerk_id="ext_boss", email="boss@example.com", global_role="owner")
    workspace = store.add_workspace()
    store.add_member(workspace, boss, role="viewer")

    ctx = await get_workspace_context("ext_boss", {}, _cookie(workspace), workspace_repo)
    assert ctx.role == "owner"


@pytest.mark.asyncio
async def test_non_member_is_denied(seeded, workspace_repo):
    _, _, workspace = seeded
    with pytest.raises(AccessDeniedError):
        await get_workspace_context("ext_ana", {}, _cookie(workspace), workspace_repo)


@pytest.mark.asyncio
async def test_global_admin_without_membership_is_denied(store, workspace_repo):
    store.add_user(clerk_id="ext_admin", email="admin@example.com", global_role="admin")
    workspace = store.add_workspace()
    with pytest.raises(AccessDeniedError):
        await get_workspace_context("ext_admin", {}, _cookie(workspace), workspace_repo)


@pytest.mark.asyncio
async def test_header_workspace_takes_precedence(seeded, workspace_repo):
    store, user, cookie_workspace = seeded
    header_workspace = store.add_workspace(name="Beta", slug="beta")
    store.add_member(cookie_workspace, user, role="viewer")
    store.add_member(header_workspace, user, role="manager")

    ctx = await get_workspace_context(
        "ext_ana",
        {"x-workspace-id": str(header_workspace.id)},
        _cookie(cookie_workspace),
        workspace_repo,
    )

    assert ctx.workspace.id == header_workspace.id
    assert ctx.role == "manager"


@pytest.mark.asyncio
async def test_store_errors_propagate():
    repo = InMemoryWorkspaceRepo(InMemoryStore())
    repo.find_user_by_external_id = AsyncMock(side_effect=RuntimeError("db down"))
    with pytest.raises(RuntimeError, match="db down"):
        await get_workspace_context("ext_ana", {}, {}, repo)


# ---------------------------------------------------------------------------
# require_workspace_context
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_require_context_raises_when_unresolved(seeded, workspace_repo):
    with pytest.raises(WorkspaceContextRequiredError):
        await require_workspace_context("ext_ana", {}, {}, workspace_repo)


@pytest.mark.asyncio
async def test_require_context_returns_context(seeded, workspace_repo):
    store, user, workspace = seeded
    store.add_member(workspace, user, role="client")
    ctx = await require_workspace_context("ext_ana", {}, _cookie(workspace), workspace_repo)
    assert ctx.role == "client"
