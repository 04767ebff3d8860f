"""Repository for identity-provider user sync."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from funnelboard_service.db.models import UserModel


class UsersRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_user(
        self,
        clerk_id: str,
        email: str,
        name: str | None = None,
        avatar_url: str | None = None,
        global_role: str = "client",
    ) -> UserModel:
        user = UserModel(
            clerk_id=clerk_id,
            email=email,
            name=name,
            avatar_url=avatar_url,
            global_role=global_role,
            is_active=True,
        )
        self._session.add(user)
        await self._session.flush()
        await self._session.refresh(user)
        return user

    async def get_by_clerk_id(self, clerk_id: str) -> UserModel | None:
        result = await self._session.execute(
            select(UserModel).where(UserModel.clerk_id == clerk_id).limit(1)
        )
        return result.scalars().first()

    async def update_user(self, clerk_id: str, **fields: Any) -> UserModel | None:
        """Apply non-None ``fields`` to the user. Returns None if unknown."""
        user = await self.get_by_clerk_id(clerk_id)
        if user is None:
            return None
        for key, value in fields.items():
            if value is not None:
                setattr(user, key, value)
        user.updated_at = datetime.now(UTC)
        await self._session.flush()
        return user

    async def deactivate_user(self, clerk_id: str) -> UserModel | None:
        user = await self.get_by_clerk_id(clerk_id)
        if user is None:
            return None
        user.is_active = False
        user.updated_at = datetime.now(UTC)
        await self._session.flush()
        return user

    async def commit(self) -> None:
        await self._session.commit()
