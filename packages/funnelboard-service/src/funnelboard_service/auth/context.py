"""Workspace context resolution.

Turns an authenticated external identity plus the request's workspace
selection into a :class:`WorkspaceContext`. The resolver distinguishes two
outcomes that callers must handle differently:

* ``None``: a precondition is missing (no session, no local account, no
  workspace selected, unknown workspace). Callers redirect to sign-in or
  onboarding.
* :class:`AccessDeniedError`: everything resolved but the identity is not a
  member of the workspace. Callers answer 403.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol
from uuid import UUID

import structlog

from funnelboard_service.auth.errors import AccessDeniedError, WorkspaceContextRequiredError
from funnelboard_service.auth.models import Identity, WorkspaceContext, WorkspaceRef
from funnelboard_service.auth.roles import Role
from funnelboard_service.settings import settings

log = structlog.get_logger(__name__)


class WorkspaceStore(Protocol):
    """Point lookups the resolver needs. Each returns one row or None."""

    async def find_user_by_external_id(self, external_id: str) -> Any | None: ...

    async def find_workspace_by_id(self, workspace_id: UUID) -> Any | None: ...

    async def find_membership(self, workspace_id: UUID, user_id: UUID) -> Any | None: ...


# ---------------------------------------------------------------------------
# Workspace id sources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HeaderSource:
    name: str

    def read(self, headers: Mapping[str, str], cookies: Mapping[str, str]) -> str | None:
        return headers.get(self.name)


@dataclass(frozen=True)
class CookieSource:
    name: str

    def read(self, headers: Mapping[str, str], cookies: Mapping[str, str]) -> str | None:
        return cookies.get(self.name)


# Header first: the routing middleware's value overrides a stale cookie.
DEFAULT_WORKSPACE_SOURCES: tuple[HeaderSource | CookieSource, ...] = (
    HeaderSource(settings.workspace_header_name),
    CookieSource(settings.workspace_cookie_name),
)


def resolve_workspace_id(
    headers: Mapping[str, str],
    cookies: Mapping[str, str],
    sources: Sequence[HeaderSource | CookieSource] = DEFAULT_WORKSPACE_SOURCES,
) -> str | None:
    """Return the first non-empty workspace id offered by ``sources``."""
    for source in sources:
        value = (source.read(headers, cookies) or "").strip()
        if value:
            return value
    return None


def _parse_uuid(value: str) -> UUID | None:
    try:
        return UUID(value)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


async def get_workspace_context(
    external_id: str | None,
    headers: Mapping[str, str],
    cookies: Mapping[str, str],
    store: WorkspaceStore,
) -> WorkspaceContext | None:
    """Resolve the workspace context for one request.

    Returns None when any precondition is missing. Raises AccessDeniedError
    when the identity and workspace both exist but no membership links them
    and the identity is not a global owner. Store errors propagate.
    """
    if not external_id:
        return None

    user = await store.find_user_by_external_id(external_id)
    if user is None:
        # Recognized session without a local account: provisioning happens elsewhere.
        log.debug("workspace_context_unknown_user", external_id=external_id)
        return None

    raw_workspace_id = resolve_workspace_id(headers, cookies)
    if raw_workspace_id is None:
        return None

    workspace_id = _parse_uuid(raw_workspace_id)
    if workspace_id is None:
        log.debug("workspace_context_malformed_id", workspace_id=raw_workspace_id)
        return None

    workspace = await store.find_workspace_by_id(workspace_id)
    if workspace is None:
        return None

    identity = Identity(
        id=user.id,
        external_id=user.clerk_id,
        email=user.email,
        global_role=user.global_role or Role.CLIENT.value,
    )
    workspace_ref = WorkspaceRef(id=workspace.id, name=workspace.name, slug=workspace.slug)

    if identity.is_global_owner:
        return WorkspaceContext(
            user=identity,
            workspace=workspace_ref,
            role=Role.OWNER.value,
            is_global_owner=True,
        )

    membership = await store.find_membership(workspace.id, identity.id)
    if membership is None:
        log.warning(
            "workspace_access_denied",
            user_id=str(identity.id),
            workspace_id=str(workspace.id),
        )
        raise AccessDeniedError()

    return WorkspaceContext(
        user=identity,
        workspace=workspace_ref,
        role=membership.role,
        is_global_owner=False,
    )


async def require_workspace_context(
    external_id: str | None,
    headers: Mapping[str, str],
    cookies: Mapping[str, str],
    store: WorkspaceStore,
) -> WorkspaceContext:
    """Like get_workspace_context, but a missing context is an error."""
    context = await get_workspace_context(external_id, headers, cookies, store)
    if context is None:
        raise WorkspaceContextRequiredError()
    return context
