"""Async SQLAlchemy engine and session factory."""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from funnelboard_service.settings import settings

log = structlog.get_logger(__name__)

_engine = None
_session_factory = None


async def init_db() -> None:
    global _engine, _session_factory
    _engine = create_async_engine(settings.database_url, echo=False, pool_size=10)
    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)
    log.info("database_initialized")


async def close_db() -> None:
    global _engine
    if _engine:
        await _engine.dispose()
        _engine = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory
