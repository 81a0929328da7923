"""Application form and review schemas."""

from datetime import datetime
from typing import Any

from app.schemas.base import CamelModel


class ApplicationSave(CamelModel):
    """Request body for creating or replacing an application form."""

    title: str | None = None
    description: str | None = None
    type: str = "delegate"
    year: int | None = None
    closing_date: datetime | None = None
    questions: list[dict[str, Any]] | None = None


class ResponseSubmit(CamelModel):
    """Public submission body.

    ``answers`` is validated by the service so malformed input produces the
    stable ``answers required`` error.
    """

    answers: Any = None


class DecisionRequest(CamelModel):
    """Body for accepting or rejecting a response."""

    comment: str | None = None
    reason: str | None = None
    role: str | None = None
