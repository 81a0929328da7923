"""Application form configuration and public submission."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from app.services.common import SupabaseService, group_by
from app.services.field_extractor import (
    EMAIL_LABELS,
    LAST_FIRST,
    extract_display_name,
    extract_field,
    labeled_answers,
)
from app.services.question_tree import (
    QUESTIONS_TABLE,
    delete_question_tree,
    load_question_tree,
    save_question_tree,
)
from app.utils.errors import EmptyResultError, NotFoundError, ValidationError
from app.utils.time import is_past, to_iso
from supabase import Client

logger = logging.getLogger(__name__)

APPLICATION_TYPES = ("delegate", "staff")
LOCKED_MESSAGE = (
    "This application has responses. Questions can no longer be changed; "
    "only the title, description and closing date can be edited."
)


def validate_application_type(app_type: str) -> str:
    """Reject anything other than a delegate or staff application."""
    if app_type not in APPLICATION_TYPES:
        raise ValidationError("Invalid type")
    return app_type


def answer_value(entry: dict[str, Any]) -> Any:
    """Return the value to store for one submitted answer.

    An explicit ``value`` wins; otherwise every key besides ``questionId``
    becomes a structured value (address sub-fields and the like).
    """
    if "value" in entry:
        return entry["value"]
    rest = {key: value for key, value in entry.items() if key != "questionId"}
    return rest or None


def hydrate_responses(db: SupabaseService, responses: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Attach each response's answers, labelled with their question text."""
    if not responses:
        return []
    answers = db.select_many(
        "application_answers",
        in_filters={"response_id": [row["id"] for row in responses]},
        order_by="id",
    )
    questions = db.select_many(
        QUESTIONS_TABLE,
        in_filters={"id": sorted({answer["question_id"] for answer in answers}, key=str)},
    )
    questions_by_id = {str(question["id"]): question for question in questions}
    answers_by_response = group_by(answers, "response_id")

    hydrated: list[dict[str, Any]] = []
    for response in responses:
        payload = dict(response)
        response_answers = answers_by_response.get(str(response["id"]), [])
        payload["answers"] = labeled_answers(response_answers, questions_by_id)
        hydrated.append(payload)
    return hydrated


class ApplicationService:
    """Application form definitions and submissions."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def _find_application(
        self, program_id: str, app_type: str, year: int | None
    ) -> dict[str, Any] | None:
        filters: dict[str, Any] = {"program_id": program_id, "type": app_type}
        if year is not None:
            filters["year"] = year
        rows = self.db.select_many(
            "applications",
            filters=filters,
            order_by="year",
            descending=True,
            limit=1,
        )
        return rows[0] if rows else None

    def _response_count(self, application_id: Any) -> int:
        return self.db.count("application_responses", {"application_id": application_id})

    def _form_payload(
        self, application: dict[str, Any], questions: list[dict[str, Any]]
    ) -> dict[str, Any]:
        return {
            "applicationId": application["id"],
            "title": application.get("title"),
            "description": application.get("description"),
            "year": application.get("year"),
            "type": application.get("type"),
            "closingDate": application.get("closing_date"),
            "questions": questions,
        }

    def get_form(self, program_id: str, app_type: str, year: int | None) -> dict[str, Any]:
        """Return the public form definition with its nested questions."""
        validate_application_type(app_type)
        self.db.get_program(program_id)
        application = self._find_application(program_id, app_type, year)
        if not application:
            raise EmptyResultError("Application")

        payload = self._form_payload(application, load_question_tree(self.db, application["id"]))
        if self._response_count(application["id"]):
            payload["locked"] = True
            payload["message"] = LOCKED_MESSAGE
        return payload

    def _metadata(self, payload: dict[str, Any]) -> dict[str, Any]:
        closing_date = payload.get("closing_date")
        return {
            "title": payload.get("title"),
            "description": payload.get("description"),
            "closing_date": (
                to_iso(closing_date) if isinstance(closing_date, (str, datetime)) else None
            ),
        }

    def _create(self, program_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        application = self.db.insert_one(
            "applications",
            {
                "program_id": program_id,
                "type": payload["type"],
                "year": payload.get("year"),
                **self._metadata(payload),
            },
        )
        save_question_tree(self.db, application["id"], payload.get("questions"))
        return application

    def _remove(self, application: dict[str, Any]) -> None:
        responses = self.db.select_many(
            "application_responses",
            filters={"application_id": application["id"]},
            columns="id",
        )
        response_ids = [row["id"] for row in responses]
        self.db.delete("application_answers", in_filters={"response_id": response_ids})
        self.db.delete("application_responses", filters={"application_id": application["id"]})
        delete_question_tree(self.db, application["id"])
        self.db.delete("applications", filters={"id": application["id"]})

    def _authorize(self, actor: dict[str, Any], program_id: str, payload: dict[str, Any]) -> None:
        self.db.get_program(program_id)
        self.db.ensure_program_admin(actor["userId"], program_id)
        if not payload.get("title"):
            raise ValidationError("title required")
        validate_application_type(payload.get("type") or "")

    def create_form(
        self, actor: dict[str, Any], program_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """Create a form, replacing an unanswered one for the same year and type."""
        self._authorize(actor, program_id, payload)
        existing = self._find_application(program_id, payload["type"], payload.get("year"))
        if existing and existing.get("year") == payload.get("year"):
            if self._response_count(existing["id"]):
                raise ValidationError(LOCKED_MESSAGE)
            self._remove(existing)

        application = self._create(program_id, payload)
        logger.info(
            "Application %s saved for program %s by %s",
            application["id"],
            program_id,
            actor.get("email"),
        )
        return self._form_payload(application, load_question_tree(self.db, application["id"]))

    def update_form(
        self,
        actor: dict[str, Any],
        program_id: str,
        payload: dict[str, Any],
    ) -> tuple[dict[str, Any], bool]:
        """Update a form in place, creating it when absent.

        Returns the form payload and whether it was created.
        """
        self._authorize(actor, program_id, payload)
        existing = self._find_application(program_id, payload["type"], payload.get("year"))
        if not existing or existing.get("year") != payload.get("year"):
            application = self._create(program_id, payload)
            logger.info(
                "Application %s created for program %s by %s",
                application["id"],
                program_id,
                actor.get("email"),
            )
            questions = load_question_tree(self.db, application["id"])
            return self._form_payload(application, questions), True

        rows = self.db.update("applications", {"id": existing["id"]}, self._metadata(payload))
        application = rows[0] if rows else existing
        locked = bool(self._response_count(existing["id"]))
        if not locked and payload.get("questions") is not None:
            delete_question_tree(self.db, existing["id"])
            save_question_tree(self.db, existing["id"], payload["questions"])

        logger.info(
            "Application %s updated for program %s by %s",
            existing["id"],
            program_id,
            actor.get("email"),
        )
        result = self._form_payload(application, load_question_tree(self.db, existing["id"]))
        if locked:
            result["locked"] = True
            result["message"] = LOCKED_MESSAGE
        return result, False

    def delete_form(
        self,
        actor: dict[str, Any],
        program_id: str,
        app_type: str,
        year: int | None,
    ) -> dict[str, Any]:
        """Delete a form with its questions and responses."""
        validate_application_type(app_type)
        self.db.get_program(program_id)
        self.db.ensure_program_admin(actor["userId"], program_id)
        application = self._find_application(program_id, app_type, year)
        if not application:
            raise EmptyResultError("Application")

        self._remove(application)
        logger.info(
            "Application %s deleted for program %s by %s",
            application["id"],
            program_id,
            actor.get("email"),
        )
        return {"status": "deleted"}

    def submit(
        self,
        program_id: str,
        app_type: str,
        year: int | None,
        answers: Any,
    ) -> dict[str, Any]:
        """Store one public submission as a pending response."""
        validate_application_type(app_type)
        self.db.get_program(program_id)
        application = self._find_application(program_id, app_type, year)
        if not application:
            raise EmptyResultError("Application")
        if is_past(application.get("closing_date")):
            raise ValidationError("Application is closed")
        if not isinstance(answers, list) or not all(isinstance(entry, dict) for entry in answers):
            raise ValidationError("answers required")

        response = self.db.insert_one(
            "application_responses",
            {"application_id": application["id"], "status": "pending"},
        )
        self.db.insert_many(
            "application_answers",
            [
                {
                    "response_id": response["id"],
                    "question_id": entry.get("questionId"),
                    "value": answer_value(entry),
                }
                for entry in answers
            ],
        )
        logger.info("Application submitted %s for program %s", response["id"], program_id)
        return {"responseId": response["id"]}

    def _response_summary(
        self, response: dict[str, Any], application: dict[str, Any]
    ) -> dict[str, Any]:
        answers = response["answers"]
        return {
            "id": response["id"],
            "applicationId": response["application_id"],
            "type": application.get("type"),
            "year": application.get("year"),
            "status": response.get("status"),
            "createdAt": response.get("created_at"),
            "name": extract_display_name(answers, style=LAST_FIRST),
            "email": extract_field(answers, EMAIL_LABELS),
            "answers": [
                {"questionId": answer["questionId"], "value": answer["value"]} for answer in answers
            ],
        }

    def list_responses(
        self,
        actor: dict[str, Any],
        program_id: str,
        status: str | None = None,
        year: int | None = None,
        response_id: str | None = None,
    ) -> list[dict[str, Any]] | dict[str, Any]:
        """List a program's responses, or return one when ``response_id`` is given."""
        self.db.get_program(program_id)
        self.db.ensure_program_admin(actor["userId"], program_id)

        filters: dict[str, Any] = {"program_id": program_id}
        if year is not None:
            filters["year"] = year
        rows = self.db.select_many("applications", filters=filters)
        applications = {str(row["id"]): row for row in rows}

        response_filters: dict[str, Any] = {}
        if status:
            response_filters["status"] = status
        if response_id is not None:
            response_filters["id"] = response_id
        responses = self.db.select_many(
            "application_responses",
            filters=response_filters,
            in_filters={"application_id": [row["id"] for row in applications.values()]},
            order_by="created_at",
        )

        summaries = [
            self._response_summary(response, applications[str(response["application_id"])])
            for response in hydrate_responses(self.db, responses)
        ]
        if response_id is not None:
            if not summaries:
                raise NotFoundError()
            return summaries[0]
        return summaries
