"""Application review endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_current_user, get_db_client
from app.schemas.application import DecisionRequest
from app.services.review_service import ReviewService
from supabase import Client

router = APIRouter()


@router.get("/{app_type}")
def list_applications(
    program_id: str,
    app_type: str,
    status: str = Query(default="pending"),
    year: int | None = Query(default=None),
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> list[dict]:
    """List delegate or staff applications awaiting review."""
    service = ReviewService(client)
    return service.list_responses(user, program_id, app_type, status=status, year=year)


@router.get("/{app_type}/{response_id}")
def get_application(
    program_id: str,
    app_type: str,
    response_id: str,
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return one application with display-ready answers."""
    service = ReviewService(client)
    return service.detail(user, program_id, app_type, response_id)


@router.post("/{app_type}/{response_id}/accept")
def accept_application(
    program_id: str,
    app_type: str,
    response_id: str,
    payload: DecisionRequest | None = None,
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Accept an application and create the roster record."""
    body = payload or DecisionRequest()
    service = ReviewService(client)
    return service.decide(
        user,
        program_id,
        app_type,
        response_id,
        decision="accept",
        comment=body.comment or body.reason,
        role=body.role,
    )


@router.post("/{app_type}/{response_id}/reject")
def reject_application(
    program_id: str,
    app_type: str,
    response_id: str,
    payload: DecisionRequest | None = None,
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Reject an application."""
    body = payload or DecisionRequest()
    service = ReviewService(client)
    return service.decide(
        user,
        program_id,
        app_type,
        response_id,
        decision="reject",
        comment=body.reason or body.comment,
    )
