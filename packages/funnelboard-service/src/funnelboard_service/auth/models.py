"""Auth domain models."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from funnelboard_service.auth.roles import Role


@dataclass(frozen=True)
class Identity:
    id: UUID
    external_id: str
    email: str
    global_role: str  # "owner" | "admin" | ... | "client"

    @property
    def is_global_owner(self) -> bool:
        return self.global_role == Role.OWNER.value


@dataclass(frozen=True)
class WorkspaceRef:
    id: UUID
    name: str
    slug: str


@dataclass(frozen=True)
class WorkspaceContext:
    """Resolved once per request, never persisted.

    A global owner always carries the owner role regardless of any
    stored membership.
    """

    user: Identity
    workspace: WorkspaceRef
    role: str
    is_global_owner: bool = False

    def __post_init__(self) -> None:
        if self.is_global_owner and self.role != Role.OWNER.value:
            raise ValueError("global owner context must carry the owner role")
