"""Shared Supabase data access and program permission helpers."""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from collections.abc import Iterable
from typing import Any

from postgrest import APIError

from app.config import settings
from app.utils.errors import AppError, EmptyResultError, ForbiddenError, ValidationError
from supabase import Client

ADMIN_ROLE = "admin"
logger = logging.getLogger(__name__)
_assignment_cache: dict[tuple[str, str], tuple[float, str | None]] = {}
_cache_lock = threading.Lock()
_MISSING = object()


def _cache_get(cache: dict[Any, tuple[float, Any]], key: Any) -> Any:
    now = time.monotonic()
    with _cache_lock:
        entry = cache.get(key)
        if not entry:
            return _MISSING
        expires_at, value = entry
        if expires_at <= now:
            cache.pop(key, None)
            return _MISSING
        return value


def _cache_set(
    cache: dict[Any, tuple[float, Any]],
    key: Any,
    value: Any,
    ttl_seconds: int,
) -> None:
    if ttl_seconds <= 0:
        return

    with _cache_lock:
        max_entries = max(100, settings.data_cache_max_entries)
        if len(cache) >= max_entries:
            oldest_key = next(iter(cache))
            cache.pop(oldest_key, None)
        cache[key] = (time.monotonic() + ttl_seconds, value)


def clear_permission_cache() -> None:
    """Drop every cached program assignment."""
    with _cache_lock:
        _assignment_cache.clear()


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def execute(self, query, default: Any = None) -> Any:
        """Execute a Supabase query and normalize API errors."""
        started = time.perf_counter()
        try:
            response = query.execute()
            elapsed_ms = (time.perf_counter() - started) * 1000
            threshold_ms = settings.slow_query_log_threshold_ms
            if threshold_ms > 0 and elapsed_ms >= threshold_ms:
                logger.warning("Slow Supabase query %.1fms", elapsed_ms)
            data = response.data
            return default if data is None and default is not None else data
        except APIError as exc:
            message = getattr(exc, "message", "Database request failed")
            raise ValidationError(str(message)) from exc

    def find_one(self, table: str, filters: dict[str, Any]) -> dict[str, Any] | None:
        """Return the first row matching ``filters`` or None."""
        query = self.client.table(table).select("*")
        for key, value in filters.items():
            query = query.eq(key, value)
        rows = self.execute(query.limit(1), default=[])
        return rows[0] if rows else None

    def select_one(
        self,
        table: str,
        filters: dict[str, Any],
        missing: AppError | None = None,
    ) -> dict[str, Any]:
        """Select a single row and raise ``missing`` (204 by default) when absent."""
        row = self.find_one(table, filters)
        if row is None:
            raise missing or EmptyResultError(table)
        return row

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        in_filters: dict[str, Iterable[Any]] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select many rows with equality and membership filters."""
        query = self.client.table(table).select(columns)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        if in_filters:
            for key, values in in_filters.items():
                values = list(values)
                if not values:
                    return []
                query = query.in_(key, values)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit:
            query = query.limit(limit)
        return self.execute(query, default=[])

    def count(self, table: str, filters: dict[str, Any] | None = None) -> int:
        """Count rows in a table with optional equality filters."""
        query = self.client.table(table).select("*", count="exact", head=True)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        try:
            response = query.execute()
            return response.count or 0
        except APIError as exc:
            message = getattr(exc, "message", "Database request failed")
            raise ValidationError(str(message)) from exc

    def insert_one(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return the created object."""
        rows = self.execute(self.client.table(table).insert(payload), default=[])
        if not rows:
            raise ValidationError(f"Failed to insert into {table}")
        return rows[0]

    def insert_many(self, table: str, payloads: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert many rows and return inserted rows."""
        if not payloads:
            return []
        return self.execute(self.client.table(table).insert(payloads), default=[])

    def update(
        self,
        table: str,
        filters: dict[str, Any],
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Update rows by equality filters and return the updated rows."""
        query = self.client.table(table).update(payload)
        for key, value in filters.items():
            query = query.eq(key, value)
        return self.execute(query, default=[])

    def delete(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        in_filters: dict[str, Iterable[Any]] | None = None,
    ) -> list[dict[str, Any]]:
        """Delete rows by equality or membership filters and return removed rows."""
        query = self.client.table(table).delete()
        for key, value in (filters or {}).items():
            query = query.eq(key, value)
        for key, values in (in_filters or {}).items():
            values = list(values)
            if not values:
                return []
            query = query.in_(key, values)
        return self.execute(query, default=[])

    def get_program(self, program_id: str) -> dict[str, Any]:
        """Return a program row, raising the empty-result error when missing."""
        return self.select_one("programs", {"id": program_id}, missing=EmptyResultError("Program"))

    def get_assignment_role(self, user_id: Any, program_id: Any) -> str | None:
        """Return the caller's role in a program, or None without an assignment."""
        cache_key = (str(user_id), str(program_id))
        cached = _cache_get(_assignment_cache, cache_key)
        if cached is not _MISSING:
            return cached

        row = self.find_one("program_assignments", {"user_id": user_id, "program_id": program_id})
        role = str(row.get("role") or "") if row else None
        _cache_set(_assignment_cache, cache_key, role, settings.permission_cache_ttl_seconds)
        return role

    def is_program_member(self, user_id: Any, program_id: Any) -> bool:
        """Any assignment to the program counts as membership."""
        return self.get_assignment_role(user_id, program_id) is not None

    def is_program_admin(self, user_id: Any, program_id: Any) -> bool:
        """Check whether the caller holds the admin role for a program."""
        return self.get_assignment_role(user_id, program_id) == ADMIN_ROLE

    def ensure_program_member(self, user_id: Any, program_id: Any) -> None:
        """Raise ForbiddenError when the user has no assignment in the program."""
        if not self.is_program_member(user_id, program_id):
            raise ForbiddenError()

    def ensure_program_admin(self, user_id: Any, program_id: Any) -> None:
        """Raise ForbiddenError when the user is not a program admin."""
        if not self.is_program_admin(user_id, program_id):
            raise ForbiddenError()


def group_by(rows: list[dict[str, Any]], key: str) -> dict[str, list[dict[str, Any]]]:
    """Group rows by an arbitrary key."""
    grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        grouped[str(row[key])].append(row)
    return grouped
