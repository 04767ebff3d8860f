"""FastAPI auth dependencies."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from funnelboard_service.auth.access import require_role_level
from funnelboard_service.auth.context import get_workspace_context, require_workspace_context
from funnelboard_service.auth.models import WorkspaceContext
from funnelboard_service.auth.roles import Role
from funnelboard_service.auth.session import get_external_user_id
from funnelboard_service.db.deps import WorkspaceRepoDep
from funnelboard_service.db.models import UserModel


def get_session_user_id(request: Request) -> str | None:
    """External user id of the request's session, or None."""
    return get_external_user_id(request.headers, request.cookies)


SessionUserIdDep = Annotated[str | None, Depends(get_session_user_id)]


async def get_current_user(external_id: SessionUserIdDep, repo: WorkspaceRepoDep) -> UserModel:
    """Resolve the session's local account.

    401 without a session, 404 when no local account exists yet.
    """
    if not external_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = await repo.find_user_by_external_id(external_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


CurrentUserDep = Annotated[UserModel, Depends(get_current_user)]


async def get_optional_workspace_context(
    request: Request, external_id: SessionUserIdDep, repo: WorkspaceRepoDep
) -> WorkspaceContext | None:
    return await get_workspace_context(external_id, request.headers, request.cookies, repo)


async def get_required_workspace_context(
    request: Request, external_id: SessionUserIdDep, repo: WorkspaceRepoDep
) -> WorkspaceContext:
    return await require_workspace_context(external_id, request.headers, request.cookies, repo)


OptionalWorkspaceContextDep = Annotated[
    WorkspaceContext | None, Depends(get_optional_workspace_context)
]
WorkspaceContextDep = Annotated[WorkspaceContext, Depends(get_required_workspace_context)]


def require_role(role: Role | str):
    """Dependency factory that enforces a minimum workspace role."""

    async def _check(context: WorkspaceContextDep) -> WorkspaceContext:
        require_role_level(context, role)
        return context

    return Depends(_check)
