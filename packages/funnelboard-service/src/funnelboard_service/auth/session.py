"""Identity-provider session tokens.

The provider signs a JWT whose ``sub`` claim is the external user id. We
only verify it and read the subject; issuing is kept for local development
and tests.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta

import jwt
import structlog

from funnelboard_service.settings import settings

log = structlog.get_logger(__name__)


def _now_utc() -> datetime:
    return datetime.now(UTC)


def create_session_token(external_id: str, expires_delta: timedelta | None = None) -> str:
    """Create a signed session token for ``external_id``."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.session_token_expire_minutes)
    now = _now_utc()
    payload = {
        "sub": external_id,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(
        payload, settings.session_jwt_secret, algorithm=settings.session_jwt_algorithm
    )


def decode_session_token(token: str) -> dict:
    """Decode and verify a session token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(
        token, settings.session_jwt_secret, algorithms=[settings.session_jwt_algorithm]
    )


def _extract_token(headers: Mapping[str, str], cookies: Mapping[str, str]) -> str | None:
    scheme, _, credentials = headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer":
        return credentials.strip() or None
    return cookies.get(settings.session_cookie_name) or None


def get_external_user_id(headers: Mapping[str, str], cookies: Mapping[str, str]) -> str | None:
    """Return the external user id of the request's session, or None.

    Checks ``Authorization: Bearer <token>`` first, then the session cookie.
    Invalid or expired tokens count as no session.
    """
    token = _extract_token(headers, cookies)
    if token is None:
        return None

    try:
        payload = decode_session_token(token)
    except jwt.PyJWTError as exc:
        log.debug("session_token_rejected", reason=str(exc))
        return None

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        log.debug("session_token_missing_subject")
        return None
    return subject
