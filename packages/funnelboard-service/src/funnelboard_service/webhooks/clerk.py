"""User sync from identity-provider webhook events."""

from __future__ import annotations

from typing import Any

import structlog

from funnelboard_service.auth.roles import Role
from funnelboard_service.db.models import UserModel, WorkspaceModel
from funnelboard_service.db.repositories.users import UsersRepo
from funnelboard_service.db.repositories.workspaces import WorkspaceRepo

log = structlog.get_logger(__name__)

MASTER_WORKSPACE_SLUG = "master"


class WebhookPayloadError(Exception):
    pass


def _external_id(data: dict[str, Any]) -> str:
    external_id = data.get("id")
    if not isinstance(external_id, str) or not external_id:
        raise WebhookPayloadError("Event data carries no user id")
    return external_id


def _primary_email(data: dict[str, Any]) -> str:
    primary_id = data.get("primary_email_address_id")
    for address in data.get("email_addresses") or []:
        if isinstance(address, dict) and address.get("id") == primary_id:
            email = address.get("email_address")
            if email:
                return email
            break
    raise WebhookPayloadError("No primary email found for user")


def _full_name(data: dict[str, Any]) -> str | None:
    parts = [data.get("first_name"), data.get("last_name")]
    return " ".join(p for p in parts if p) or None


def _metadata_role(data: dict[str, Any]) -> str | None:
    metadata = data.get("public_metadata")
    if not isinstance(metadata, dict):
        return None
    return metadata.get("globalRole")


async def handle_user_created(
    data: dict[str, Any], users: UsersRepo, workspaces: WorkspaceRepo
) -> UserModel:
    email = _primary_email(data)
    global_role = _metadata_role(data) or Role.CLIENT.value

    user = await users.create_user(
        clerk_id=_external_id(data),
        email=email,
        name=_full_name(data),
        avatar_url=data.get("image_url") or None,
        global_role=global_role,
    )
    log.info("webhook_user_created", user_id=str(user.id), email=email)

    if global_role == Role.OWNER.value:
        await create_master_workspace(user, workspaces)
    return user


async def handle_user_updated(data: dict[str, Any], users: UsersRepo) -> UserModel | None:
    email = _primary_email(data)
    user = await users.update_user(
        _external_id(data),
        email=email,
        name=_full_name(data),
        avatar_url=data.get("image_url") or None,
        global_role=_metadata_role(data),
    )
    if user is not None:
        log.info("webhook_user_updated", user_id=str(user.id), email=email)
    return user


async def handle_user_deleted(data: dict[str, Any], users: UsersRepo) -> UserModel | None:
    user = await users.deactivate_user(_external_id(data))
    if user is not None:
        log.info("webhook_user_deactivated", user_id=str(user.id))
    return user


async def create_master_workspace(owner: UserModel, workspaces: WorkspaceRepo) -> WorkspaceModel:
    """The platform owner's own business workspace, with unlimited limits."""
    workspace = await workspaces.create_workspace(
        name="Minha Empresa",
        slug=MASTER_WORKSPACE_SLUG,
        description="Workspace principal",
        is_master=True,
        is_agency_client=False,
        plan="agency",
        timezone="America/Sao_Paulo",
        currency="BRL",
        locale="pt-BR",
        owner_id=owner.id,
        features={
            "aiCopywriting": True,
            "abTesting": True,
            "customDomains": True,
            "whiteLabel": True,
            "apiAccess": True,
        },
        limits={
            "campaigns": -1,
            "landingPages": -1,
            "leads": -1,
            "users": -1,
            "storage": -1,
        },
    )
    await workspaces.add_member(workspace.id, owner.id, role=Role.OWNER.value)
    log.info("master_workspace_created", workspace_id=str(workspace.id))
    return workspace


async def dispatch_event(
    event: dict[str, Any], users: UsersRepo, workspaces: WorkspaceRepo
) -> None:
    event_type = event.get("type")
    data = event.get("data") or {}
    if not isinstance(data, dict):
        raise WebhookPayloadError("Event data must be an object")

    if event_type == "user.created":
        await handle_user_created(data, users, workspaces)
    elif event_type == "user.updated":
        await handle_user_updated(data, users)
    elif event_type == "user.deleted":
        await handle_user_deleted(data, users)
    else:
        log.info("webhook_event_unhandled", event_type=event_type)
        return

    await users.commit()
