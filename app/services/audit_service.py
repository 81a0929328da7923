"""Audit trail writer."""

from __future__ import annotations

from typing import Any

from app.services.common import SupabaseService
from supabase import Client


class AuditService:
    """Record state-changing actions in ``audit_logs``."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def record(
        self,
        action: str,
        table_name: str,
        record_id: Any,
        user_id: Any,
        changes: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Insert one audit row."""
        return self.db.insert_one(
            "audit_logs",
            {
                "table_name": table_name,
                "record_id": str(record_id),
                "user_id": user_id,
                "action": action,
                "changes": changes or {},
            },
        )
