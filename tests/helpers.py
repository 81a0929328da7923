"""Seeding helpers for API tests."""

from __future__ import annotations

from typing import Any

from tests.fakes import FakeSupabaseClient

ADMIN_ID = 1
MEMBER_ID = 2
OUTSIDER_ID = 3
PROGRAM_ID = "abc"


def seed_application(
    db: FakeSupabaseClient,
    app_type: str = "delegate",
    year: int | None = 2025,
    labels: tuple[str, ...] = ("First Name", "Last Name", "Email"),
    closing_date: str | None = None,
) -> tuple[dict[str, Any], dict[str, dict[str, Any]]]:
    """Create an application whose questions carry ``labels``."""
    application = db.add_row(
        "applications",
        {
            "program_id": PROGRAM_ID,
            "type": app_type,
            "year": year,
            "title": f"{app_type.title()} Application",
            "description": "",
            "closing_date": closing_date,
        },
    )
    questions = {}
    for index, label in enumerate(labels):
        questions[label] = db.add_row(
            "application_questions",
            {
                "application_id": application["id"],
                "parent_id": None,
                "order": index,
                "type": "text",
                "text": label,
            },
        )
    return application, questions


def seed_response(
    db: FakeSupabaseClient,
    application: dict[str, Any],
    questions: dict[str, dict[str, Any]],
    values: dict[str, Any],
    status: str = "pending",
) -> dict[str, Any]:
    """Create a response answering the labelled questions."""
    response = db.add_row(
        "application_responses", {"application_id": application["id"], "status": status}
    )
    for label, value in values.items():
        db.add_row(
            "application_answers",
            {"response_id": response["id"], "question_id": questions[label]["id"], "value": value},
        )
    return response
