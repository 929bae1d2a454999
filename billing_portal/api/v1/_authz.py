"""Shared authorization helpers for API v1 route modules."""

from __future__ import annotations

import hmac
from typing import NoReturn

from fastapi import HTTPException, status

from billing_portal.auth.jwt import IdentityClaims, verify_id_token
from billing_portal.core.config import get_config
from billing_portal.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)


def _extract_bearer_token(authorization: str | None) -> str:
    if authorization is None or not authorization.strip():
        raise AuthenticationError("Missing Authorization Bearer token")
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthenticationError("Missing Authorization Bearer token")
    return parts[1].strip()


def authenticate(authorization: str | None) -> IdentityClaims:
    token = _extract_bearer_token(authorization)
    return verify_id_token(token, secret=get_config().JWT_SECRET)


def verify_cron_secret(cron_secret: str | None, authorization: str | None) -> None:
    """Accept the shared secret from `x-cron-secret` or an Authorization bearer."""
    expected = get_config().CRON_SECRET
    provided = cron_secret
    if not provided and authorization:
        parts = authorization.strip().split(" ", 1)
        if len(parts) == 2 and parts[0].lower() == "bearer":
            provided = parts[1].strip()
    if not expected or not provided:
        raise AuthenticationError("Unauthorized")
    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise AuthenticationError("Unauthorized")


def map_error(exc: Exception) -> tuple[int, str]:
    if isinstance(exc, AuthenticationError):
        return status.HTTP_401_UNAUTHORIZED, str(exc)
    if isinstance(exc, AuthorizationError):
        return status.HTTP_403_FORBIDDEN, str(exc)
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND, str(exc)
    if isinstance(exc, RateLimitError):
        return status.HTTP_429_TOO_MANY_REQUESTS, str(exc)
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST, str(exc)
    return status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Server error"


def raise_http(exc: Exception) -> NoReturn:
    code, detail = map_error(exc)
    raise HTTPException(status_code=code, detail={"error": detail}) from exc
