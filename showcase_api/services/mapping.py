from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import fields
from typing import Any

from showcase_api.services.lifecycle import coerce_status
from showcase_api.services.records import ContactLinks, ProjectRecord, SubmissionDraft, SubmissionRecord

# Storage columns of the submissions table, in table order.
SUBMISSION_COLUMNS: tuple[str, ...] = (
    "id",
    "first_name",
    "last_name",
    "email",
    "bio",
    "personal_statement",
    "skills",
    "career_goals",
    "major",
    "graduation_year",
    "website",
    "github",
    "linkedin",
    "twitter",
    "photo_data",
    "photo_url",
    "projects",
    "status",
    "submitted_at",
    "reviewed_at",
    "reviewed_by",
    "review_notes",
    "pr_url",
    "pr_number",
    "created_at",
    "updated_at",
)
CONTACT_COLUMNS: tuple[str, ...] = ("website", "github", "linkedin", "twitter")
STORE_MANAGED_COLUMNS: frozenset[str] = frozenset({"id", "created_at", "updated_at"})

# (attribute, JSON key) pairs for project objects stored in the projects column.
PROJECT_KEYS: tuple[tuple[str, str], ...] = (
    ("title", "title"),
    ("description", "description"),
    ("technologies", "technologies"),
    ("demo_url", "demoUrl"),
    ("repo_url", "repoUrl"),
    ("screenshot_data", "screenshotData"),
    ("screenshot_url", "screenshotUrl"),
    ("semester", "semester"),
    ("completed_date", "completedDate"),
    ("featured", "featured"),
    ("can_embed", "canEmbed"),
)

MUTABLE_FIELDS: frozenset[str] = frozenset(
    item.name for item in fields(SubmissionRecord) if item.name not in STORE_MANAGED_COLUMNS
)


class UnknownFieldError(ValueError):
    def __init__(self, names: list[str]) -> None:
        super().__init__(f"unsupported submission fields: {', '.join(sorted(names))}")
        self.names = names


def project_to_json(project: ProjectRecord) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for attribute, key in PROJECT_KEYS:
        value = getattr(project, attribute)
        if value is None:
            continue
        payload[key] = list(value) if attribute == "technologies" else value
    return payload


def project_from_json(payload: Mapping[str, Any]) -> ProjectRecord:
    values: dict[str, Any] = {}
    for attribute, key in PROJECT_KEYS:
        if key in payload and payload[key] is not None:
            values[attribute] = payload[key]
    values["technologies"] = [str(item) for item in values.get("technologies") or []]
    values["title"] = str(values.get("title") or "")
    values["description"] = str(values.get("description") or "")
    values["semester"] = str(values.get("semester") or "")
    values["featured"] = bool(values.get("featured", False))
    values["can_embed"] = bool(values.get("can_embed", True))
    return ProjectRecord(**values)


def draft_to_row(draft: SubmissionDraft) -> dict[str, Any]:
    return {
        "first_name": draft.first_name,
        "last_name": draft.last_name,
        "email": draft.email,
        "bio": draft.bio,
        "personal_statement": draft.personal_statement,
        "skills": list(draft.skills),
        "career_goals": draft.career_goals,
        "major": draft.major,
        "graduation_year": draft.graduation_year,
        "website": draft.contact.website,
        "github": draft.contact.github,
        "linkedin": draft.contact.linkedin,
        "twitter": draft.contact.twitter,
        "photo_data": draft.photo_data,
        "photo_url": draft.photo_url,
        "projects": [project_to_json(project) for project in draft.projects],
    }


def record_to_row(record: SubmissionRecord) -> dict[str, Any]:
    row = draft_to_row(record)
    row.update(
        {
            "id": record.id,
            "status": record.status.value,
            "submitted_at": record.submitted_at,
            "reviewed_at": record.reviewed_at,
            "reviewed_by": record.reviewed_by,
            "review_notes": record.review_notes,
            "pr_url": record.pr_url,
            "pr_number": record.pr_number,
            "created_at": record.created_at,
            "updated_at": record.updated_at,
        }
    )
    return {column: row[column] for column in SUBMISSION_COLUMNS}


def row_to_record(row: Mapping[str, Any]) -> SubmissionRecord:
    projects = row["projects"]
    if isinstance(projects, str):
        projects = json.loads(projects)
    return SubmissionRecord(
        id=str(row["id"]),
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        bio=row["bio"],
        personal_statement=row["personal_statement"],
        skills=list(row["skills"] or []),
        career_goals=row["career_goals"],
        major=row["major"],
        graduation_year=row["graduation_year"],
        contact=ContactLinks(**{column: row[column] for column in CONTACT_COLUMNS}),
        photo_data=row["photo_data"],
        photo_url=row["photo_url"],
        projects=[project_from_json(item) for item in projects or [] if isinstance(item, Mapping)],
        status=coerce_status(row["status"]),
        submitted_at=row["submitted_at"],
        reviewed_at=row["reviewed_at"],
        reviewed_by=row["reviewed_by"],
        review_notes=row["review_notes"],
        pr_url=row["pr_url"],
        pr_number=row["pr_number"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def changes_to_row(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Translate a partial attribute update into storage columns."""
    unknown = [name for name in changes if name not in MUTABLE_FIELDS]
    if unknown:
        raise UnknownFieldError(unknown)

    row: dict[str, Any] = {}
    for name, value in changes.items():
        if name == "contact":
            contact = value if isinstance(value, ContactLinks) else ContactLinks(**dict(value or {}))
            for column in CONTACT_COLUMNS:
                row[column] = getattr(contact, column)
        elif name == "projects":
            row["projects"] = [
                project_to_json(item if isinstance(item, ProjectRecord) else project_from_json(item))
                for item in value or []
            ]
        elif name == "status":
            row["status"] = coerce_status(value).value
        elif name == "skills":
            row["skills"] = list(value or [])
        else:
            row[name] = value
    return row
