"""Identity-provider webhook endpoint."""

from __future__ import annotations

import json

import structlog
from fastapi import APIRouter, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError

from funnelboard_service.db.deps import UsersRepoDep, WorkspaceRepoDep
from funnelboard_service.settings import settings
from funnelboard_service.webhooks.clerk import WebhookPayloadError, dispatch_event
from funnelboard_service.webhooks.signature import WebhookVerificationError, verify_webhook

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/clerk")
async def clerk_webhook(
    request: Request, users: UsersRepoDep, workspaces: WorkspaceRepoDep
) -> dict[str, bool]:
    """Sync users from signed identity-provider events."""
    secret = settings.clerk_webhook_secret
    if not secret:
        log.error("webhook_secret_missing")
        raise HTTPException(status_code=500, detail="Server configuration error")

    body = await request.body()
    try:
        verify_webhook(
            secret, request.headers, body, tolerance_seconds=settings.webhook_tolerance_seconds
        )
    except WebhookVerificationError as exc:
        log.warning("webhook_verification_failed", reason=str(exc))
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        event = json.loads(body)
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON payload") from exc
    if not isinstance(event, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    try:
        await dispatch_event(event, users, workspaces)
    except (WebhookPayloadError, SQLAlchemyError) as exc:
        log.error("webhook_handler_failed", event_type=event.get("type"), reason=str(exc))
        raise HTTPException(status_code=500, detail="Webhook handler failed") from exc

    return {"received": True}
