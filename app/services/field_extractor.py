"""Applicant identity extraction from free-form application answers.

Questions carry no semantic tags, so applicant fields are located by the
literal question label. Lookups run an ordered list of matchers and the
first non-empty value wins:

1. ``ExactLabelMatcher``: label equals a target label (case-sensitive).
2. ``LegacyFullNameMatcher``: older forms asked a single "Full Name"
   question; only consulted for a display name when neither name part has
   an exact label.
3. ``PartialLabelMatcher``: label contains a target label, ignoring case.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

FIRST_NAME = "First Name"
LAST_NAME = "Last Name"
FULL_NAME = "Full Name"
EMAIL_LABELS = ("Email", "Email Address")
PHONE_LABELS = ("Phone", "Phone Number")
ROLE_LABELS = ("Preferred Role", "Desired Role", "Desired Position", "Role", "Position")

FIRST_LAST = "first_last"
LAST_FIRST = "last_first"


def normalize_answer_value(value: Any) -> str | None:
    """Render a stored answer value as display text."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        if "value" in value:
            return normalize_answer_value(value["value"])
        parts = [normalize_answer_value(item) for item in value.values()]
        return ", ".join(part for part in parts if part)
    if isinstance(value, (list, tuple)):
        parts = [normalize_answer_value(item) for item in value]
        return ", ".join(part for part in parts if part)
    return str(value)


class ExactLabelMatcher:
    """Match answers whose label is exactly one of the targets."""

    def match(self, answers: Sequence[Mapping[str, Any]], targets: Iterable[str]) -> str | None:
        for target in targets:
            for answer in answers:
                if answer.get("label") != target:
                    continue
                value = normalize_answer_value(answer.get("value"))
                if value:
                    return value
        return None


class LegacyFullNameMatcher:
    """Match the single combined name question of legacy forms."""

    def match(
        self, answers: Sequence[Mapping[str, Any]], targets: Iterable[str] = (FULL_NAME,)
    ) -> str | None:
        exact = ExactLabelMatcher().match(answers, targets)
        if exact:
            return exact
        return PartialLabelMatcher().match(answers, targets)


class PartialLabelMatcher:
    """Match answers whose label contains a target, ignoring case."""

    def match(self, answers: Sequence[Mapping[str, Any]], targets: Iterable[str]) -> str | None:
        for target in targets:
            needle = target.lower()
            for answer in answers:
                if needle not in str(answer.get("label") or "").lower():
                    continue
                value = normalize_answer_value(answer.get("value"))
                if value:
                    return value
        return None


EXACT = ExactLabelMatcher()
PARTIAL = PartialLabelMatcher()
LEGACY_FULL_NAME = LegacyFullNameMatcher()
FIELD_MATCHERS = (EXACT, PARTIAL)


def extract_field(
    answers: Sequence[Mapping[str, Any]],
    targets: Iterable[str],
    matchers: Sequence[Any] = FIELD_MATCHERS,
) -> str | None:
    """Return the first value any matcher resolves for ``targets``."""
    target_list = list(targets)
    for matcher in matchers:
        value = matcher.match(answers, target_list)
        if value:
            return value
    return None


def compose_name(first: str | None, last: str | None, style: str = FIRST_LAST) -> str:
    """Join name parts as "First Last" or "Last, First"."""
    first = (first or "").strip()
    last = (last or "").strip()
    if style == LAST_FIRST and first and last:
        return f"{last}, {first}"
    return f"{first} {last}".strip()


def extract_display_name(
    answers: Sequence[Mapping[str, Any]], style: str = FIRST_LAST
) -> str | None:
    """Resolve the applicant's display name.

    First and last names resolve independently and are joined according to
    ``style``. A legacy full-name answer, returned as written, is consulted
    only when neither part has an exact label.
    """
    first = EXACT.match(answers, (FIRST_NAME,))
    last = EXACT.match(answers, (LAST_NAME,))
    if not first and not last:
        full_name = LEGACY_FULL_NAME.match(answers)
        if full_name:
            return full_name
    first = first or PARTIAL.match(answers, (FIRST_NAME,))
    last = last or PARTIAL.match(answers, (LAST_NAME,))
    if first or last:
        return compose_name(first, last, style)
    return None


def extract_role(answers: Sequence[Mapping[str, Any]]) -> str | None:
    """Resolve the role a staff applicant asked for."""
    return extract_field(answers, ROLE_LABELS)


def extract_applicant(answers: Sequence[Mapping[str, Any]]) -> dict[str, str | None]:
    """Resolve the identity fields needed to create a roster record."""
    return {
        "first_name": extract_field(answers, (FIRST_NAME,)),
        "last_name": extract_field(answers, (LAST_NAME,)),
        "email": extract_field(answers, EMAIL_LABELS),
        "phone": extract_field(answers, PHONE_LABELS),
    }


def labeled_answers(
    answers: Iterable[Mapping[str, Any]],
    questions: Mapping[str, Mapping[str, Any]],
) -> list[dict[str, Any]]:
    """Attach each answer's question text as ``label``."""
    labeled: list[dict[str, Any]] = []
    for answer in answers:
        question = questions.get(str(answer.get("question_id"))) or {}
        labeled.append(
            {
                "questionId": answer.get("question_id"),
                "label": question.get("text") or "",
                "type": question.get("type"),
                "value": answer.get("value"),
            }
        )
    return labeled
