"""FastAPI dependency injection for database sessions and repositories."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from funnelboard_service.db.engine import get_session_factory
from funnelboard_service.db.repositories.users import UsersRepo
from funnelboard_service.db.repositories.workspaces import WorkspaceRepo


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield an async DB session, auto-closing on exit."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_workspace_repo(session: SessionDep) -> WorkspaceRepo:
    return WorkspaceRepo(session)


def get_users_repo(session: SessionDep) -> UsersRepo:
    return UsersRepo(session)


WorkspaceRepoDep = Annotated[WorkspaceRepo, Depends(get_workspace_repo)]
UsersRepoDep = Annotated[UsersRepo, Depends(get_users_repo)]
