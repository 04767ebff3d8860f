"""Workspace role hierarchy and permission levels."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType


class Role(str, Enum):
    """Roles a user can hold, globally or inside a workspace."""
    OWNER = "owner"        # Platform owner, sees every workspace
    ADMIN = "admin"        # Full access to a workspace
    MANAGER = "manager"    # Campaigns and pages, no billing
    EDITOR = "editor"      # Content, no settings
    VIEWER = "viewer"      # Read-only
    CLIENT = "client"      # Client portal access


ROLE_HIERARCHY: MappingProxyType[str, int] = MappingProxyType({
    Role.OWNER.value: 100,
    Role.ADMIN.value: 80,
    Role.MANAGER.value: 60,
    Role.EDITOR.value: 40,
    Role.VIEWER.value: 20,
    Role.CLIENT.value: 10,
})

MAX_RANK = max(ROLE_HIERARCHY.values())

# Ranks above every real role: unknown requirements can never be met.
UNSATISFIABLE_RANK = MAX_RANK + 1

PERMISSION_LEVELS: MappingProxyType[str, int] = MappingProxyType({
    "campaigns:view": 10,
    "campaigns:edit": 40,
    "campaigns:delete": 60,
    "leads:view": 10,
    "leads:edit": 40,
    "leads:export": 60,
    "analytics:view": 10,
    "pages:view": 10,
    "pages:edit": 40,
    "pages:publish": 60,
    "brand:view": 10,
    "brand:edit": 60,
    "settings:view": 40,
    "settings:edit": 80,
    "billing:view": 80,
    "billing:edit": 100,
    "team:view": 60,
    "team:edit": 80,
})


def _key(role: Role | str | None) -> str | None:
    if isinstance(role, Role):
        return role.value
    return role


def role_rank(role: Role | str | None) -> int:
    """Rank of a subject's role. Unrecognized roles count as least privileged (0)."""
    return ROLE_HIERARCHY.get(_key(role), 0)


def required_rank(role: Role | str | None) -> int:
    """Rank demanded by a requirement. Unrecognized requirements are unsatisfiable."""
    return ROLE_HIERARCHY.get(_key(role), UNSATISFIABLE_RANK)


def permission_rank(permission: str) -> int:
    """Level a named permission demands. Unknown names demand the owner level."""
    return PERMISSION_LEVELS.get(permission, MAX_RANK)


def is_known_role(role: str | None) -> bool:
    return _key(role) in ROLE_HIERARCHY
