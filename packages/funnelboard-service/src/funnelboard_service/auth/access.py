"""Role checks over a resolved workspace context."""

from __future__ import annotations

from funnelboard_service.auth.errors import InsufficientPermissionsError
from funnelboard_service.auth.models import WorkspaceContext
from funnelboard_service.auth.roles import Role, permission_rank, required_rank, role_rank


def has_role_level(context: WorkspaceContext, required: Role | str) -> bool:
    """True iff the context's role ranks at or above ``required``."""
    return role_rank(context.role) >= required_rank(required)


def require_role_level(context: WorkspaceContext, required: Role | str) -> None:
    """Raise InsufficientPermissionsError unless has_role_level holds."""
    if not has_role_level(context, required):
        name = required.value if isinstance(required, Role) else required
        raise InsufficientPermissionsError(name)


def has_permission(context: WorkspaceContext, permission: str) -> bool:
    if context.is_global_owner:
        return True
    return role_rank(context.role) >= permission_rank(permission)
