"""Election endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.dependencies import get_current_user, get_db_client
from app.schemas.election import (
    ElectionCreate,
    ElectionResponse,
    ElectionResult,
    ElectionUpdate,
    ElectionVoteResponse,
    VoteCreate,
)
from app.services.election_service import ElectionService
from supabase import Client

router = APIRouter()


@router.post(
    "/program-years/{program_year_id}/elections",
    status_code=201,
    response_model=ElectionResponse,
)
def create_election(
    program_year_id: int,
    payload: ElectionCreate | None = None,
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> Any:
    """Create an election in a program year."""
    body = payload or ElectionCreate()
    service = ElectionService(client)
    return service.create(
        user,
        program_year_id,
        position_id=body.position_id,
        grouping_id=body.grouping_id,
        method=body.method,
        start_time=body.start_time,
        end_time=body.end_time,
    )


@router.get(
    "/program-years/{program_year_id}/elections",
    response_model=list[ElectionResponse],
)
def list_elections(
    program_year_id: int,
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> Any:
    """List elections of a program year."""
    service = ElectionService(client)
    return service.list_for_year(user, program_year_id)


@router.put("/elections/{election_id}", response_model=ElectionResponse)
def update_election(
    election_id: int,
    payload: ElectionUpdate | None = None,
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> Any:
    """Update election status or schedule."""
    service = ElectionService(client)
    return service.update(user, election_id, (payload or ElectionUpdate()).model_dump())


@router.delete("/elections/{election_id}", response_model=ElectionResponse)
def delete_election(
    election_id: int,
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> Any:
    """Archive an election."""
    service = ElectionService(client)
    return service.archive(user, election_id)


@router.post(
    "/elections/{election_id}/vote",
    status_code=201,
    response_model=ElectionVoteResponse,
)
def cast_vote(
    election_id: int,
    payload: VoteCreate | None = None,
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> Any:
    """Cast a ballot."""
    body = payload or VoteCreate()
    service = ElectionService(client)
    return service.vote(
        user,
        election_id,
        candidate_id=body.candidate_id,
        voter_id=body.voter_id,
        rank=body.rank,
    )


@router.get("/elections/{election_id}/results", response_model=list[ElectionResult])
def election_results(
    election_id: int,
    user: dict[str, Any] = Depends(get_current_user),
    client: Client = Depends(get_db_client),
) -> Any:
    """Return vote counts per candidate."""
    service = ElectionService(client)
    return service.results(user, election_id)
