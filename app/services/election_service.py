"""Election lifecycle, vote casting, and tabulation."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Any

from app.services.audit_service import AuditService
from app.services.common import SupabaseService
from app.utils.errors import EmptyResultError, ValidationError
from app.utils.time import to_iso
from supabase import Client

logger = logging.getLogger(__name__)

ACTIVE = "active"
ARCHIVED = "archived"


def tally_votes(votes: list[dict[str, Any]]) -> list[dict[str, int]]:
    """Count ballots per candidate, highest count first.

    Every row counts once whatever the election method or rank; repeated
    ballots from one voter are all counted.
    """
    counts = Counter(vote["candidate_delegate_id"] for vote in votes)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [{"candidate_id": candidate, "count": total} for candidate, total in ordered]


class ElectionService:
    """Manage elections scoped to a program year."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.audit = AuditService(client)

    def _program_year(self, program_year_id: int) -> dict[str, Any]:
        return self.db.select_one(
            "program_years",
            {"id": program_year_id},
            missing=EmptyResultError("Program year"),
        )

    def _election_scope(self, election_id: int) -> tuple[dict[str, Any], dict[str, Any]]:
        election = self.db.select_one(
            "elections",
            {"id": election_id},
            missing=EmptyResultError("Election"),
        )
        return election, self._program_year(election["program_year_id"])

    def create(
        self,
        actor: dict[str, Any],
        program_year_id: int,
        position_id: int | None,
        grouping_id: int | None,
        method: str | None,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> dict[str, Any]:
        """Create an election for one position within one grouping."""
        program_year = self._program_year(program_year_id)
        program_id = program_year["program_id"]
        self.db.ensure_program_admin(actor["userId"], program_id)
        if not position_id or not grouping_id or not method:
            raise ValidationError("positionId, groupingId and method required")

        election = self.db.insert_one(
            "elections",
            {
                "program_year_id": program_year["id"],
                "position_id": position_id,
                "grouping_id": grouping_id,
                "method": method,
                "status": ACTIVE,
                "start_time": to_iso(start_time),
                "end_time": to_iso(end_time),
            },
        )
        self.audit.record("create", "Election", election["id"], actor["userId"], {"method": method})
        logger.info("Election %s created for program %s", election["id"], program_id)
        return election

    def list_for_year(self, actor: dict[str, Any], program_year_id: int) -> list[dict[str, Any]]:
        """List every election of a program year, archived ones included."""
        program_year = self._program_year(program_year_id)
        self.db.ensure_program_member(actor["userId"], program_year["program_id"])
        return self.db.select_many(
            "elections",
            filters={"program_year_id": program_year["id"]},
            order_by="id",
        )

    def update(
        self,
        actor: dict[str, Any],
        election_id: int,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        """Change status or schedule; closed elections may be reopened."""
        election, program_year = self._election_scope(election_id)
        program_id = program_year["program_id"]
        self.db.ensure_program_admin(actor["userId"], program_id)

        payload: dict[str, Any] = {}
        if changes.get("status") is not None:
            payload["status"] = changes["status"]
        for key in ("start_time", "end_time"):
            if changes.get(key) is not None:
                payload[key] = to_iso(changes[key])
        if not payload:
            return election

        rows = self.db.update("elections", {"id": election["id"]}, payload)
        self.audit.record("update", "Election", election["id"], actor["userId"], payload)
        logger.info("Election %s updated for program %s", election["id"], program_id)
        return rows[0] if rows else {**election, **payload}

    def archive(self, actor: dict[str, Any], election_id: int) -> dict[str, Any]:
        """Soft-delete an election; its votes are kept."""
        election, program_year = self._election_scope(election_id)
        program_id = program_year["program_id"]
        self.db.ensure_program_admin(actor["userId"], program_id)

        rows = self.db.update("elections", {"id": election["id"]}, {"status": ARCHIVED})
        changes = {"status": ARCHIVED}
        self.audit.record("delete", "Election", election["id"], actor["userId"], changes)
        logger.info("Election %s removed for program %s", election["id"], program_id)
        return rows[0] if rows else {**election, "status": ARCHIVED}

    def vote(
        self,
        actor: dict[str, Any],
        election_id: int,
        candidate_id: int | None,
        voter_id: int | None,
        rank: int | None = None,
    ) -> dict[str, Any]:
        """Record one ballot.

        No check is made for an earlier ballot from the same voter.
        """
        election, program_year = self._election_scope(election_id)
        program_id = program_year["program_id"]
        self.db.ensure_program_member(actor["userId"], program_id)
        if not candidate_id or not voter_id:
            raise ValidationError("candidateId and voterId required")

        vote = self.db.insert_one(
            "election_votes",
            {
                "election_id": election["id"],
                "candidate_delegate_id": candidate_id,
                "voter_delegate_id": voter_id,
                "vote_rank": rank,
            },
        )
        logger.info("Vote %s recorded for program %s", vote["id"], program_id)
        return vote

    def results(self, actor: dict[str, Any], election_id: int) -> list[dict[str, int]]:
        """Return per-candidate vote counts."""
        election, program_year = self._election_scope(election_id)
        self.db.ensure_program_member(actor["userId"], program_year["program_id"])
        votes = self.db.select_many(
            "election_votes",
            filters={"election_id": election["id"]},
            columns="candidate_delegate_id",
        )
        return tally_votes(votes)
