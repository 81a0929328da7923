"""Election schemas."""

from datetime import datetime

from app.schemas.base import CamelModel


class ElectionCreate(CamelModel):
    """Request body for creating an election."""

    position_id: int | None = None
    grouping_id: int | None = None
    method: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


class ElectionUpdate(CamelModel):
    """Request body for updating an election."""

    status: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


class VoteCreate(CamelModel):
    """Request body for casting a vote."""

    candidate_id: int | None = None
    voter_id: int | None = None
    rank: int | None = None


class ElectionResponse(CamelModel):
    """Election representation."""

    id: int
    program_year_id: int
    position_id: int
    grouping_id: int
    method: str
    status: str
    start_time: datetime | None = None
    end_time: datetime | None = None


class ElectionVoteResponse(CamelModel):
    """A single recorded ballot."""

    id: int
    election_id: int
    candidate_delegate_id: int
    voter_delegate_id: int
    vote_rank: int | None = None
    created_at: datetime | None = None


class ElectionResult(CamelModel):
    """Vote count for one candidate."""

    candidate_id: int
    count: int
