"""Repository for users, workspaces and memberships as seen by the tenancy layer."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from funnelboard_service.db.models import UserModel, WorkspaceMemberModel, WorkspaceModel


class WorkspaceRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # -- point lookups used by the context resolver --------------------------

    async def find_user_by_external_id(self, external_id: str) -> UserModel | None:
        result = await self._session.execute(
            select(UserModel).where(UserModel.clerk_id == external_id).limit(1)
        )
        return result.scalars().first()

    async def find_workspace_by_id(self, workspace_id: UUID) -> WorkspaceModel | None:
        return await self._session.get(WorkspaceModel, workspace_id)

    async def find_membership(
        self, workspace_id: UUID, user_id: UUID
    ) -> WorkspaceMemberModel | None:
        result = await self._session.execute(
            select(WorkspaceMemberModel)
            .where(
                WorkspaceMemberModel.workspace_id == workspace_id,
                WorkspaceMemberModel.user_id == user_id,
            )
            .limit(1)
        )
        return result.scalars().first()

    # -- listing --------------------------------------------------------------

    async def list_all_workspaces(self) -> list[WorkspaceModel]:
        """All workspaces, non-master first then by name."""
        result = await self._session.execute(
            select(WorkspaceModel).order_by(WorkspaceModel.is_master, WorkspaceModel.name)
        )
        return list(result.scalars().all())

    async def list_workspaces_for_user(self, user_id: UUID) -> list[WorkspaceModel]:
        result = await self._session.execute(
            select(WorkspaceModel)
            .join(WorkspaceMemberModel, WorkspaceMemberModel.workspace_id == WorkspaceModel.id)
            .where(WorkspaceMemberModel.user_id == user_id)
            .order_by(WorkspaceModel.name)
        )
        return list(result.scalars().all())

    # -- writes ---------------------------------------------------------------

    async def slug_exists(self, slug: str) -> bool:
        result = await self._session.execute(
            select(WorkspaceModel.id).where(WorkspaceModel.slug == slug).limit(1)
        )
        return result.first() is not None

    async def create_workspace(self, **fields: Any) -> WorkspaceModel:
        workspace = WorkspaceModel(**fields)
        self._session.add(workspace)
        await self._session.flush()
        await self._session.refresh(workspace)
        return workspace

    async def add_member(
        self, workspace_id: UUID, user_id: UUID, role: str = "viewer"
    ) -> WorkspaceMemberModel:
        member = WorkspaceMemberModel(
            workspace_id=workspace_id,
            user_id=user_id,
            role=role,
            joined_at=datetime.now(UTC),
        )
        self._session.add(member)
        await self._session.flush()
        return member

    async def update_workspace(
        self, workspace_id: UUID, updates: dict[str, Any]
    ) -> WorkspaceModel | None:
        workspace = await self.find_workspace_by_id(workspace_id)
        if workspace is None:
            return None
        for key, value in updates.items():
            setattr(workspace, key, value)
        workspace.updated_at = datetime.now(UTC)
        await self._session.commit()
        await self._session.refresh(workspace)
        return workspace

    async def delete_workspace(self, workspace_id: UUID) -> None:
        await self._session.execute(delete(WorkspaceModel).where(WorkspaceModel.id == workspace_id))
        await self._session.commit()

    async def commit(self) -> None:
        await self._session.commit()
