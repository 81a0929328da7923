"""HS256 bearer token helpers."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from app.config import settings
from app.utils.errors import UnauthorizedError
from app.utils.time import now_utc


def create_access_token(
    payload: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Sign ``payload`` with the configured secret and an expiry claim."""
    to_encode = dict(payload)
    issued_at = now_utc()
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    to_encode.update({"iat": issued_at, "exp": issued_at + lifetime})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry, returning the token claims.

    Raises:
        UnauthorizedError: 401 for malformed, forged, or expired tokens.
    """
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise UnauthorizedError() from exc
    if claims.get("userId") is None:
        raise UnauthorizedError()
    return claims
