"""Time utility helpers."""

from __future__ import annotations

from datetime import UTC, datetime


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def parse_iso_datetime(value: str | datetime | None) -> datetime | None:
    """Parse an ISO timestamp (``Z`` suffix allowed) into an aware datetime."""
    if value is None or value == "":
        return None

    if isinstance(value, str):
        normalized = value.replace("Z", "+00:00")
        parsed = datetime.fromisoformat(normalized)
    else:
        parsed = value

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def to_iso(value: str | datetime | None) -> str | None:
    """Render a timestamp for storage, or None when absent."""
    parsed = parse_iso_datetime(value)
    return parsed.isoformat() if parsed else None


def is_past(value: str | datetime | None, now: datetime | None = None) -> bool:
    """Return True when ``value`` is set and strictly before ``now``."""
    moment = parse_iso_datetime(value)
    if moment is None:
        return False
    return moment < (now or now_utc())
