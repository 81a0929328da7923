"""Pytest fixtures for backend tests."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
    os.environ.setdefault("JWT_SECRET", "test-secret")
    os.environ.setdefault("ENVIRONMENT", "test")


_set_default_env()

from app.dependencies import get_db_client  # noqa: E402
from app.main import app  # noqa: E402
from app.services.common import clear_permission_cache  # noqa: E402
from app.utils.security import create_access_token  # noqa: E402
from tests.fakes import FakeSupabaseClient  # noqa: E402
from tests.helpers import ADMIN_ID, MEMBER_ID, PROGRAM_ID  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_permission_cache() -> Iterator[None]:
    clear_permission_cache()
    yield
    clear_permission_cache()


@pytest.fixture
def db() -> FakeSupabaseClient:
    """Fake store seeded with one program, an admin and a plain member."""
    store = FakeSupabaseClient()
    store.add_row("programs", {"id": PROGRAM_ID, "name": "Boys State"})
    for user_id, role in ((ADMIN_ID, "admin"), (MEMBER_ID, "counselor")):
        store.add_row(
            "program_assignments", {"user_id": user_id, "program_id": PROGRAM_ID, "role": role}
        )
    return store


@pytest.fixture
def client(db: FakeSupabaseClient) -> Iterator[TestClient]:
    """Create a FastAPI test client backed by the fake store."""
    app.dependency_overrides[get_db_client] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build an Authorization header for a user id."""

    def _headers(user_id: int = ADMIN_ID, email: str = "admin@example.com") -> dict[str, str]:
        token = create_access_token({"userId": user_id, "email": email})
        return {"Authorization": f"Bearer {token}"}

    return _headers
