"""Workspace endpoints: list, create, read, update, delete, membership, context."""

from __future__ import annotations

import re
import time
import unicodedata
from uuid import UUID

import structlog
from fastapi import APIRouter, HTTPException

from funnelboard_service.auth.access import has_permission, has_role_level
from funnelboard_service.auth.deps import (
    CurrentUserDep,
    OptionalWorkspaceContextDep,
    WorkspaceContextDep,
    require_role,
)
from funnelboard_service.auth.roles import PERMISSION_LEVELS, Role
from funnelboard_service.db.deps import WorkspaceRepoDep
from funnelboard_service.db.models import UserModel, WorkspaceModel
from funnelboard_service.db.repositories.workspaces import WorkspaceRepo
from funnelboard_service.rest.schemas import (
    CreateWorkspaceRequest,
    IdentitySchema,
    MembershipSchema,
    PermissionsSchema,
    UpdateWorkspaceRequest,
    WorkspaceContextSchema,
    WorkspaceRefSchema,
    WorkspaceSchema,
)

log = structlog.get_logger(__name__)

router = APIRouter()

_WORKSPACE_ADMIN_ROLES = (Role.OWNER.value, Role.ADMIN.value)
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def slugify(name: str) -> str:
    """Lowercase, strip accents, collapse non-alphanumerics to single dashes."""
    normalized = unicodedata.normalize("NFD", name.lower())
    without_accents = "".join(c for c in normalized if not unicodedata.combining(c))
    return re.sub(r"[^a-z0-9]+", "-", without_accents).strip("-")


def _base36(value: int) -> str:
    digits = ""
    while value:
        value, remainder = divmod(value, 36)
        digits = _BASE36_DIGITS[remainder] + digits
    return digits or "0"


def _workspace_to_schema(workspace: WorkspaceModel) -> WorkspaceSchema:
    """Convert an ORM WorkspaceModel to the REST WorkspaceSchema."""
    return WorkspaceSchema(
        id=str(workspace.id),
        name=workspace.name,
        slug=workspace.slug,
        description=workspace.description,
        is_master=bool(workspace.is_master),
        is_agency_client=bool(workspace.is_agency_client),
        industry=workspace.industry,
        sub_industry=workspace.sub_industry,
        plan=workspace.plan or "starter",
        timezone=workspace.timezone,
        currency=workspace.currency,
        locale=workspace.locale,
        limits=workspace.limits or {},
        features=workspace.features or {},
        created_at=workspace.created_at,
        updated_at=workspace.updated_at,
    )


def _parse_workspace_id(workspace_id: str) -> UUID:
    try:
        return UUID(workspace_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Workspace not found")


def _is_global_owner(user: UserModel) -> bool:
    return user.global_role == Role.OWNER.value


async def _get_workspace_or_404(repo: WorkspaceRepo, workspace_id: UUID) -> WorkspaceModel:
    workspace = await repo.find_workspace_by_id(workspace_id)
    if workspace is None:
        raise HTTPException(status_code=404, detail="Workspace not found")
    return workspace


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/workspaces", response_model=list[WorkspaceSchema])
async def list_workspaces(user: CurrentUserDep, repo: WorkspaceRepoDep) -> list[WorkspaceSchema]:
    """All workspaces for the platform owner, member workspaces for everyone else."""
    if _is_global_owner(user):
        workspaces = await repo.list_all_workspaces()
    else:
        workspaces = await repo.list_workspaces_for_user(user.id)
    return [_workspace_to_schema(w) for w in workspaces]


@router.post("/workspaces", response_model=WorkspaceSchema, status_code=201)
async def create_workspace(
    request: CreateWorkspaceRequest, user: CurrentUserDep, repo: WorkspaceRepoDep
) -> WorkspaceSchema:
    """Create an agency-client workspace. The creator becomes its admin."""
    if user.global_role not in _WORKSPACE_ADMIN_ROLES:
        raise HTTPException(status_code=403, detail="Insufficient permissions")

    if not request.name:
        raise HTTPException(status_code=400, detail="Name is required")

    slug = slugify(request.name)
    if await repo.slug_exists(slug):
        slug = f"{slug}-{_base36(int(time.time() * 1000))}"

    workspace = await repo.create_workspace(
        name=request.name,
        slug=slug,
        description=request.description,
        industry=request.industry,
        sub_industry=request.sub_industry,
        is_master=False,
        is_agency_client=True,
        plan="starter",
        timezone="America/Sao_Paulo",
        currency="BRL",
        locale="pt-BR",
        owner_id=user.id,
    )
    await repo.add_member(workspace.id, user.id, role=Role.ADMIN.value)
    await repo.commit()

    log.info("workspace_created", workspace_id=str(workspace.id), slug=slug, user_id=str(user.id))
    return _workspace_to_schema(workspace)


@router.get("/workspaces/{workspace_id}", response_model=WorkspaceSchema)
async def get_workspace(
    workspace_id: str, user: CurrentUserDep, repo: WorkspaceRepoDep
) -> WorkspaceSchema:
    wid = _parse_workspace_id(workspace_id)
    workspace = await _get_workspace_or_404(repo, wid)

    if not _is_global_owner(user):
        membership = await repo.find_membership(wid, user.id)
        if membership is None:
            raise HTTPException(status_code=403, detail="Access denied")

    return _workspace_to_schema(workspace)


@router.patch("/workspaces/{workspace_id}", response_model=WorkspaceSchema)
async def update_workspace(
    workspace_id: str,
    request: UpdateWorkspaceRequest,
    user: CurrentUserDep,
    repo: WorkspaceRepoDep,
) -> WorkspaceSchema:
    wid = _parse_workspace_id(workspace_id)

    if not _is_global_owner(user):
        membership = await repo.find_membership(wid, user.id)
        if membership is None or membership.role not in _WORKSPACE_ADMIN_ROLES:
            raise HTTPException(status_code=403, detail="Access denied")

    updates = request.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    workspace = await repo.update_workspace(wid, updates)
    if workspace is None:
        raise HTTPException(status_code=404, detail="Workspace not found")
    return _workspace_to_schema(workspace)


@router.delete("/workspaces/{workspace_id}")
async def delete_workspace(
    workspace_id: str, user: CurrentUserDep, repo: WorkspaceRepoDep
) -> dict[str, bool]:
    if not _is_global_owner(user):
        raise HTTPException(status_code=403, detail="Only platform owner can delete workspaces")

    wid = _parse_workspace_id(workspace_id)
    workspace = await _get_workspace_or_404(repo, wid)
    if workspace.is_master:
        raise HTTPException(status_code=400, detail="Cannot delete master workspace")

    await repo.delete_workspace(wid)
    log.info("workspace_deleted", workspace_id=str(wid), user_id=str(user.id))
    return {"success": True}


@router.get("/workspaces/{workspace_id}/membership", response_model=MembershipSchema)
async def get_membership(
    workspace_id: str, user: CurrentUserDep, repo: WorkspaceRepoDep
) -> MembershipSchema:
    """The caller's membership. Global owners get an implicit owner membership."""
    wid = _parse_workspace_id(workspace_id)
    workspace = await _get_workspace_or_404(repo, wid)

    if _is_global_owner(user):
        return MembershipSchema(
            id="global-owner",
            workspace_id=str(wid),
            user_id=str(user.id),
            role=Role.OWNER.value,
            workspace=_workspace_to_schema(workspace),
        )

    membership = await repo.find_membership(wid, user.id)
    if membership is None:
        raise HTTPException(status_code=403, detail="Not a member of this workspace")

    return MembershipSchema(
        id=str(membership.id),
        workspace_id=str(membership.workspace_id),
        user_id=str(membership.user_id),
        role=membership.role,
        permissions=membership.permissions or {},
        joined_at=membership.joined_at,
        workspace=_workspace_to_schema(workspace),
    )


@router.get("/workspace/context", response_model=WorkspaceContextSchema)
async def current_context(context: OptionalWorkspaceContextDep) -> WorkspaceContextSchema:
    """The workspace context resolved for this request."""
    if context is None:
        raise HTTPException(status_code=404, detail="No workspace context")
    return WorkspaceContextSchema(
        user=IdentitySchema(
            id=str(context.user.id),
            external_id=context.user.external_id,
            email=context.user.email,
            global_role=context.user.global_role,
        ),
        workspace=WorkspaceRefSchema(
            id=str(context.workspace.id),
            name=context.workspace.name,
            slug=context.workspace.slug,
        ),
        role=context.role,
        is_global_owner=context.is_global_owner,
    )


@router.get(
    "/workspace/permissions",
    response_model=PermissionsSchema,
    dependencies=[require_role(Role.CLIENT)],
)
async def current_permissions(context: WorkspaceContextDep) -> PermissionsSchema:
    """Role flags and the named permissions granted in the current workspace."""
    return PermissionsSchema(
        role=context.role,
        is_owner=has_role_level(context, Role.OWNER),
        is_admin=has_role_level(context, Role.ADMIN),
        can_manage=has_role_level(context, Role.MANAGER),
        can_edit=has_role_level(context, Role.EDITOR),
        permissions={name: has_permission(context, name) for name in PERMISSION_LEVELS},
    )
