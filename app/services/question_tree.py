"""Application question trees.

Questions are stored flat, each row carrying a nullable ``parent_id`` and a
sibling ``order``. Clients work with a nested shape: top-level questions
sorted by ``order`` with their children under ``fields`` and their option
values under ``options``. This module converts between the two.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from typing import Any

from app.services.common import SupabaseService

logger = logging.getLogger(__name__)

QUESTIONS_TABLE = "application_questions"
OPTIONS_TABLE = "application_question_options"


def _sort_key(row: dict[str, Any]) -> tuple[int, str]:
    return int(row.get("order") or 0), str(row.get("id"))


def _question_view(row: dict[str, Any]) -> dict[str, Any]:
    options = sorted(row.get("options") or [], key=lambda option: int(option.get("order") or 0))
    return {
        "id": row["id"],
        "applicationId": row.get("application_id"),
        "parentId": row.get("parent_id"),
        "order": row.get("order"),
        "type": row.get("type"),
        "text": row.get("text"),
        "required": row.get("required"),
        "accept": row.get("accept"),
        "maxFiles": row.get("max_files"),
        "options": [option["value"] for option in options],
        "fields": [],
    }


def build_question_tree(rows: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Nest flat question rows under their parents.

    Every row lands exactly once: as a root when ``parent_id`` is null, or in
    its root parent's ``fields``. Rows whose parent is not a root are dropped.
    """
    roots: list[dict[str, Any]] = []
    children: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        if row.get("parent_id") is None:
            roots.append(row)
        else:
            children[str(row["parent_id"])].append(row)

    tree: list[dict[str, Any]] = []
    placed: set[str] = set()
    for root in sorted(roots, key=_sort_key):
        view = _question_view(root)
        root_key = str(root["id"])
        ordered = sorted(children[root_key], key=_sort_key)
        view["fields"] = [_question_view(child) for child in ordered]
        placed.add(root_key)
        tree.append(view)

    orphans = [key for key in children if key not in placed]
    if orphans:
        logger.debug("Dropping questions with unknown parents: %s", ", ".join(orphans))
    return tree


def load_question_tree(db: SupabaseService, application_id: Any) -> list[dict[str, Any]]:
    """Read an application's questions and options and return the nested tree."""
    rows = db.select_many(
        QUESTIONS_TABLE, filters={"application_id": application_id}, order_by="order"
    )
    options = db.select_many(
        OPTIONS_TABLE,
        in_filters={"question_id": [row["id"] for row in rows]},
        order_by="order",
    )
    options_by_question: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for option in options:
        options_by_question[str(option["question_id"])].append(option)

    hydrated = [dict(row, options=options_by_question[str(row["id"])]) for row in rows]
    return build_question_tree(hydrated)


def save_question_tree(
    db: SupabaseService,
    application_id: Any,
    items: list[dict[str, Any]] | None,
    parent_id: Any = None,
) -> list[dict[str, Any]]:
    """Persist a nested question payload as flat parent-linked rows.

    Each question is inserted before its options and children so the parent
    id is known when the children are written. Sibling ``order`` is the array
    index, restarting at 0 for every ``fields`` list.
    """
    created_rows: list[dict[str, Any]] = []
    for index, item in enumerate(items or []):
        created = db.insert_one(
            QUESTIONS_TABLE,
            {
                "application_id": application_id,
                "parent_id": parent_id,
                "order": index,
                "type": item.get("type"),
                "text": item.get("text"),
                "required": item.get("required"),
                "accept": item.get("accept"),
                "max_files": item.get("maxFiles"),
            },
        )
        created_rows.append(created)

        options = item.get("options")
        if isinstance(options, list):
            for position, value in enumerate(options):
                db.insert_one(
                    OPTIONS_TABLE,
                    {"question_id": created["id"], "value": value, "order": position},
                )

        fields = item.get("fields")
        if isinstance(fields, list):
            created_rows.extend(save_question_tree(db, application_id, fields, created["id"]))
    return created_rows


def delete_question_tree(db: SupabaseService, application_id: Any) -> None:
    """Remove every question and option owned by an application."""
    rows = db.select_many(QUESTIONS_TABLE, filters={"application_id": application_id}, columns="id")
    db.delete(OPTIONS_TABLE, in_filters={"question_id": [row["id"] for row in rows]})
    db.delete(QUESTIONS_TABLE, filters={"application_id": application_id})
