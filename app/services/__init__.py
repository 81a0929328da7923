"""Service package exports with lazy loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "ApplicationService": "app.services.application_service",
    "AuditService": "app.services.audit_service",
    "ElectionService": "app.services.election_service",
    "ReviewService": "app.services.review_service",
    "SupabaseService": "app.services.common",
}

__all__ = sorted(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(_EXPORTS[name])
    return getattr(module, name)
