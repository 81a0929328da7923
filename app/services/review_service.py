"""Review of application responses: listing, detail, accept and reject."""

from __future__ import annotations

import logging
from typing import Any

from app.services.application_service import hydrate_responses, validate_application_type
from app.services.audit_service import AuditService
from app.services.common import SupabaseService
from app.services.field_extractor import (
    FIRST_LAST,
    extract_applicant,
    extract_display_name,
    extract_role,
    normalize_answer_value,
)
from app.utils.errors import InvalidStateError, NotFoundError, ValidationError
from supabase import Client

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    ("first_name", "First Name"),
    ("last_name", "Last Name"),
    ("email", "Email"),
)
DECISIONS = {"accept": "accepted", "reject": "rejected"}


def missing_fields_message(applicant: dict[str, Any]) -> str | None:
    """Name the unresolved required fields in canonical order, if any."""
    missing = [label for key, label in REQUIRED_FIELDS if not applicant.get(key)]
    if not missing:
        return None
    return f"Application is missing required fields ({', '.join(missing)})"


def ensure_program_year(db: SupabaseService, program_id: str, year: int) -> dict[str, Any]:
    """Return the program year for ``year``, creating an active one if needed."""
    existing = db.find_one("program_years", {"program_id": program_id, "year": year})
    if existing:
        logger.info(
            "Using existing program year %s (id: %s) for program %s",
            year,
            existing["id"],
            program_id,
        )
        return existing

    created = db.insert_one(
        "program_years", {"program_id": program_id, "year": year, "status": "active"}
    )
    logger.info(
        "Auto-created program year %s (id: %s) for program %s",
        year,
        created["id"],
        program_id,
    )
    return created


class ReviewService:
    """Admin review of delegate and staff applications."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.audit = AuditService(client)

    def _applications(
        self, program_id: str, app_type: str, year: int | None = None
    ) -> dict[str, dict[str, Any]]:
        filters: dict[str, Any] = {"program_id": program_id, "type": app_type}
        if year is not None:
            filters["year"] = year
        return {str(row["id"]): row for row in self.db.select_many("applications", filters=filters)}

    def _authorize(self, actor: dict[str, Any], program_id: str, app_type: str) -> dict[str, Any]:
        validate_application_type(app_type)
        program = self.db.get_program(program_id)
        self.db.ensure_program_admin(actor["userId"], program_id)
        return program

    def _get_response(
        self, program_id: str, app_type: str, response_id: str
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        applications = self._applications(program_id, app_type)
        response = self.db.find_one("application_responses", {"id": response_id})
        if not response or str(response["application_id"]) not in applications:
            raise NotFoundError()
        hydrated = hydrate_responses(self.db, [response])[0]
        return hydrated, applications[str(response["application_id"])]

    def _summary(
        self, response: dict[str, Any], application: dict[str, Any], app_type: str
    ) -> dict[str, Any]:
        answers = response["answers"]
        name = extract_display_name(answers, style=FIRST_LAST) or ""
        return {
            "id": response["id"],
            "name": name,
            "fullName": name,
            "role": (extract_role(answers) or "") if app_type == "staff" else None,
            "year": application.get("year"),
            "status": response.get("status"),
            "submittedAt": response.get("created_at"),
        }

    def list_responses(
        self,
        actor: dict[str, Any],
        program_id: str,
        app_type: str,
        status: str = "pending",
        year: int | None = None,
    ) -> list[dict[str, Any]]:
        """List responses of one application type, pending by default."""
        self._authorize(actor, program_id, app_type)
        applications = self._applications(program_id, app_type, year)
        responses = self.db.select_many(
            "application_responses",
            filters={"status": status},
            in_filters={"application_id": [row["id"] for row in applications.values()]},
            order_by="created_at",
        )
        return [
            self._summary(response, applications[str(response["application_id"])], app_type)
            for response in hydrate_responses(self.db, responses)
        ]

    def detail(
        self, actor: dict[str, Any], program_id: str, app_type: str, response_id: str
    ) -> dict[str, Any]:
        """Return one response with labelled, display-ready answers."""
        self._authorize(actor, program_id, app_type)
        response, application = self._get_response(program_id, app_type, response_id)
        payload = self._summary(response, application, app_type)
        payload["answers"] = [
            {
                "questionId": answer["questionId"],
                "label": answer["label"],
                "type": answer["type"],
                "value": answer["value"],
                "answer": normalize_answer_value(answer["value"]),
            }
            for answer in response["answers"]
        ]
        return payload

    def decide(
        self,
        actor: dict[str, Any],
        program_id: str,
        app_type: str,
        response_id: str,
        decision: str,
        comment: str | None = None,
        role: str | None = None,
    ) -> dict[str, Any]:
        """Accept or reject a pending response.

        Accepting creates the delegate or staff roster record in the program
        year matching the application's year. The steps are not atomic: a
        failure part-way leaves the earlier writes in place.
        """
        self._authorize(actor, program_id, app_type)
        response, application = self._get_response(program_id, app_type, response_id)
        if response.get("status") != "pending":
            raise InvalidStateError("Already decided")

        changes: dict[str, Any] = {}
        if comment:
            changes["comment"] = comment

        result: dict[str, Any] = {"success": True}
        if decision == "accept":
            record = self._create_roster_record(program_id, app_type, response, application, role)
            changes.update({"createdRecordId": record["id"], "recordType": app_type})
            result[f"{app_type}Id"] = record["id"]

        self.db.update(
            "application_responses", {"id": response["id"]}, {"status": DECISIONS[decision]}
        )
        self.audit.record(
            action=decision,
            table_name="ApplicationResponse",
            record_id=response["id"],
            user_id=actor["userId"],
            changes=changes,
        )
        logger.info(
            "%s %s application %s for program %s by %s",
            "Accepted" if decision == "accept" else "Rejected",
            app_type,
            response["id"],
            program_id,
            actor.get("email"),
        )
        return result

    def _create_roster_record(
        self,
        program_id: str,
        app_type: str,
        response: dict[str, Any],
        application: dict[str, Any],
        role: str | None,
    ) -> dict[str, Any]:
        answers = response["answers"]
        if app_type == "staff":
            role = role or extract_role(answers)
            if not role:
                raise ValidationError("Role is required when accepting staff applications")

        applicant = extract_applicant(answers)
        message = missing_fields_message(applicant)
        if message:
            raise ValidationError(message)

        year = application.get("year")
        if not year:
            logger.error("Application %s has no year specified", application["id"])
            raise ValidationError("Application has no year specified")

        program_year = ensure_program_year(self.db, program_id, year)
        record = {
            "program_year_id": program_year["id"],
            "first_name": applicant["first_name"],
            "last_name": applicant["last_name"],
            "email": applicant["email"],
            "phone": applicant["phone"],
        }
        if app_type == "delegate":
            return self.db.insert_one("delegates", {**record, "status": "pending_assignment"})
        return self.db.insert_one("staff", {**record, "role": role, "status": "active"})
