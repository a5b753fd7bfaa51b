"""
Session tokens: issuing, verifying and carrying them in a cookie.

Sessions are stateless JWTs signed with ``ACCESS_TOKEN_SECRET``. Nothing is
stored server-side, so logging out only tells the browser to drop the
cookie; a copied token stays valid until its ``exp``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from fastapi import Depends, Request, Response

from artifact_backend.config import Settings, get_settings
from artifact_backend.errors import ArtifactServiceError, Unauthorized

logger = logging.getLogger(__name__)


def _require_secret(settings: Settings) -> str:
    if not settings.access_token_secret:
        raise ArtifactServiceError("ACCESS_TOKEN_SECRET is not configured")
    return settings.access_token_secret


def create_access_token(
    claims: Dict[str, Any], settings: Settings | None = None
) -> str:
    """Sign ``claims`` into a long-lived token.

    The claims are taken as given. Any ``exp``/``iat`` supplied by the caller
    is replaced with server-computed values.
    """
    settings = settings or get_settings()
    secret = _require_secret(settings)
    now = datetime.now(timezone.utc)
    payload = dict(claims)
    payload["iat"] = now
    payload["exp"] = now + timedelta(days=settings.access_token_expire_days)
    return jwt.encode(payload, secret, algorithm=settings.access_token_algorithm)


def verify_token(token: str | None, settings: Settings | None = None) -> Dict[str, Any]:
    """Return the decoded claims of a valid token or raise ``Unauthorized``.

    A missing token fails before any decoding. Bad signatures, expired tokens
    and garbage all fail the same way.
    """
    if not token:
        raise Unauthorized()
    settings = settings or get_settings()
    if not settings.access_token_secret:
        logger.error("Cannot verify session token: ACCESS_TOKEN_SECRET is not set")
        raise Unauthorized()
    try:
        claims = jwt.decode(
            token,
            settings.access_token_secret,
            algorithms=[settings.access_token_algorithm],
        )
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected session token: %s", exc)
        raise Unauthorized() from exc
    logger.debug("Verified session for %s", claims.get("email"))
    return claims


def get_current_user(
    request: Request, settings: Settings = Depends(get_settings)
) -> Dict[str, Any]:
    """FastAPI dependency guarding routes that expose user-scoped data."""
    claims = verify_token(request.cookies.get(settings.session_cookie_name), settings)
    request.state.user = claims
    return claims


def set_session_cookie(
    response: Response, token: str, settings: Settings | None = None
) -> None:
    settings = settings or get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.session_cookie_secure,
        max_age=settings.access_token_expire_days * 24 * 60 * 60,
    )


def clear_session_cookie(response: Response, settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
    )
