"""Verification of svix-signed identity-provider webhooks."""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from collections.abc import Mapping

_SECRET_PREFIX = "whsec_"


class WebhookVerificationError(Exception):
    pass


def _secret_bytes(secret: str) -> bytes:
    return base64.b64decode(secret.removeprefix(_SECRET_PREFIX))


def sign_payload(secret: str, msg_id: str, timestamp: str, body: bytes) -> str:
    """Return the ``v1,<base64>`` signature for one message."""
    signed_content = f"{msg_id}.{timestamp}.".encode() + body
    digest = hmac.new(_secret_bytes(secret), signed_content, hashlib.sha256).digest()
    return "v1," + base64.b64encode(digest).decode()


def verify_webhook(
    secret: str,
    headers: Mapping[str, str],
    body: bytes,
    tolerance_seconds: int = 300,
    now: float | None = None,
) -> None:
    """Raise WebhookVerificationError unless ``body`` carries a valid signature."""
    msg_id = headers.get("svix-id")
    timestamp = headers.get("svix-timestamp")
    signature_header = headers.get("svix-signature")
    if not msg_id or not timestamp or not signature_header:
        raise WebhookVerificationError("Missing svix headers")

    try:
        sent_at = int(timestamp)
    except ValueError as exc:
        raise WebhookVerificationError("Invalid timestamp") from exc

    current = time.time() if now is None else now
    if abs(current - sent_at) > tolerance_seconds:
        raise WebhookVerificationError("Timestamp outside tolerance")

    expected = sign_payload(secret, msg_id, timestamp, body)
    for candidate in signature_header.split(" "):
        if hmac.compare_digest(candidate, expected):
            return
    raise WebhookVerificationError("Invalid signature")
