"""Pydantic request/response models for REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class WorkspaceSchema(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    is_master: bool = False
    is_agency_client: bool = False
    industry: str | None = None
    sub_industry: str | None = None
    plan: str = "starter"
    timezone: str | None = None
    currency: str | None = None
    locale: str | None = None
    limits: dict[str, Any] = Field(default_factory=dict)
    features: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CreateWorkspaceRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    industry: str | None = None
    sub_industry: str | None = None


class UpdateWorkspaceRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    industry: str | None = None
    sub_industry: str | None = None
    timezone: str | None = None
    currency: str | None = None
    locale: str | None = None


class MembershipSchema(BaseModel):
    id: str
    workspace_id: str
    user_id: str
    role: str
    permissions: dict[str, Any] = Field(default_factory=dict)
    joined_at: datetime | None = None
    workspace: WorkspaceSchema


class IdentitySchema(BaseModel):
    id: str
    external_id: str
    email: str
    global_role: str


class WorkspaceRefSchema(BaseModel):
    id: str
    name: str
    slug: str


class WorkspaceContextSchema(BaseModel):
    user: IdentitySchema
    workspace: WorkspaceRefSchema
    role: str
    is_global_owner: bool


class PermissionsSchema(BaseModel):
    role: str
    is_owner: bool
    is_admin: bool
    can_manage: bool
    can_edit: bool
    permissions: dict[str, bool] = Field(default_factory=dict)
