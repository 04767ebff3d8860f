"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(UTC)


DEFAULT_WORKSPACE_LIMITS = {
    "campaigns": 10,
    "landingPages": 20,
    "leads": 1000,
    "users": 3,
    "storage": 1073741824,  # 1GB
}

DEFAULT_WORKSPACE_FEATURES = {
    "aiCopywriting": True,
    "abTesting": True,
    "customDomains": False,
    "whiteLabel": False,
    "apiAccess": False,
}


# ---------------------------------------------------------------------------
# Auth / tenancy models
# ---------------------------------------------------------------------------


class UserModel(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    clerk_id = Column(Text, unique=True, nullable=False)
    email = Column(Text, unique=True, nullable=False)
    name = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    global_role = Column(String, nullable=False, default="client")
    preferences = Column(JSONB, default=dict)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    memberships = relationship(
        "WorkspaceMemberModel",
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="WorkspaceMemberModel.user_id",
    )


class WorkspaceModel(Base):
    __tablename__ = "workspaces"
    __table_args__ = (
        Index("workspaces_owner_idx", "owner_id"),
        Index("workspaces_industry_idx", "industry"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    slug = Column(Text, unique=True, nullable=False)
    description = Column(Text, nullable=True)
    is_master = Column(Boolean, nullable=False, default=False)
    is_agency_client = Column(Boolean, nullable=False, default=False)
    industry = Column(Text, nullable=True)
    sub_industry = Column(Text, nullable=True)
    plan = Column(String, nullable=False, default="starter")
    plan_expires_at = Column(DateTime(timezone=True), nullable=True)
    limits = Column(JSONB, default=lambda: dict(DEFAULT_WORKSPACE_LIMITS))
    timezone = Column(Text, default="America/Sao_Paulo")
    currency = Column(Text, default="BRL")
    locale = Column(Text, default="pt-BR")
    features = Column(JSONB, default=lambda: dict(DEFAULT_WORKSPACE_FEATURES))
    owner_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="RESTRICT"), nullable=True
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    members = relationship(
        "WorkspaceMemberModel", back_populates="workspace", cascade="all, delete-orphan"
    )


class WorkspaceMemberModel(Base):
    __tablename__ = "workspace_members"
    __table_args__ = (
        UniqueConstraint("workspace_id", "user_id", name="workspace_members_unique"),
        Index("workspace_members_workspace_idx", "workspace_id"),
        Index("workspace_members_user_idx", "user_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id = Column(
        UUID(as_uuid=True), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role = Column(String, nullable=False, default="viewer")
    permissions = Column(JSONB, default=dict)
    invited_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    invited_at = Column(DateTime(timezone=True), nullable=True)
    joined_at = Column(DateTime(timezone=True), default=_utcnow)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    workspace = relationship("WorkspaceModel", back_populates="members")
    user = relationship("UserModel", back_populates="memberships", foreign_keys=[user_id])
