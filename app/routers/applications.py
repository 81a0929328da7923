"""Application form endpoints (definition and public submission)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Response

from app.dependencies import get_current_user, get_db_client
from app.schemas.application import ApplicationSave, ResponseSubmit
from app.services.application_service import ApplicationService
from supabase import Client

router = APIRouter()


@router.get("")
def get_application(
    program_id: str,
    app_type: str = Query(default="delegate", alias="type"),
    year: int | None = Query(default=None),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return the form definition for public rendering."""
    service = ApplicationService(client)
    return service.get_form(program_id, app_type, year)


@router.post("", status_code=201)
def create_application(
    program_id: str,
    payload: ApplicationSave | None = None,
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Create an application form."""
    service = ApplicationService(client)
    return service.create_form(user, program_id, (payload or ApplicationSave()).model_dump())


@router.put("")
def update_application(
    program_id: str,
    response: Response,
    payload: ApplicationSave | None = None,
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Update an application form, creating it when it does not exist."""
    service = ApplicationService(client)
    body = (payload or ApplicationSave()).model_dump()
    form, created = service.update_form(user, program_id, body)
    if created:
        response.status_code = 201
    return form


@router.delete("")
def delete_application(
    program_id: str,
    app_type: str = Query(default="delegate", alias="type"),
    year: int | None = Query(default=None),
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Delete an application form."""
    service = ApplicationService(client)
    return service.delete_form(user, program_id, app_type, year)


@router.post("/responses", status_code=201)
def submit_response(
    program_id: str,
    payload: ResponseSubmit | None = None,
    app_type: str = Query(default="delegate", alias="type"),
    year: int | None = Query(default=None),
    client: Client = Depends(get_db_client),
) -> dict:
    """Submit an application (no authentication required)."""
    service = ApplicationService(client)
    answers = payload.answers if payload else None
    return service.submit(program_id, app_type, year, answers)


@router.get("/responses")
def list_responses(
    program_id: str,
    status: str | None = Query(default=None),
    year: int | None = Query(default=None),
    response_id: str | None = Query(default=None, alias="responseId"),
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> Any:
    """List submitted responses, or return one by ``responseId``."""
    service = ApplicationService(client)
    return service.list_responses(
        user, program_id, status=status, year=year, response_id=response_id
    )
