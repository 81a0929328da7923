"""FastAPI dependency injection helpers."""

from __future__ import annotations

import threading
import time
from typing import Any

from fastapi import Header

from app.config import settings
from app.utils.errors import UnauthorizedError
from app.utils.security import decode_access_token
from app.utils.supabase_client import get_service_client
from supabase import Client

_token_cache: dict[str, tuple[float, dict[str, Any]]] = {}
_cache_lock = threading.Lock()
TOKEN_CACHE_TTL_SECONDS = 15


def _cached_claims(token: str) -> dict[str, Any] | None:
    now = time.monotonic()
    with _cache_lock:
        entry = _token_cache.get(token)
        if not entry:
            return None
        expires_at, claims = entry
        if expires_at <= now or claims.get("exp", now + 1) <= time.time():
            _token_cache.pop(token, None)
            return None
        return claims


def _cache_claims(token: str, claims: dict[str, Any]) -> None:
    with _cache_lock:
        if len(_token_cache) >= max(1, settings.data_cache_max_entries):
            oldest_key = next(iter(_token_cache))
            _token_cache.pop(oldest_key, None)
        _token_cache[token] = (time.monotonic() + TOKEN_CACHE_TTL_SECONDS, claims)


def get_current_user(authorization: str = Header(None)) -> dict[str, Any]:
    """Extract and validate the bearer token from the Authorization header.

    Returns the caller identity as ``{"userId": ..., "email": ...}``.

    Raises:
        UnauthorizedError: 401 if the header is missing, malformed, or
            the token cannot be validated.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError()

    token = authorization.split(" ", 1)[1]
    claims = _cached_claims(token)
    if claims is None:
        claims = decode_access_token(token)
        _cache_claims(token, claims)
    return {"userId": claims["userId"], "email": claims.get("email")}


def get_db_client() -> Client:
    """Return the service-role Supabase client used by backend services."""
    return get_service_client()
