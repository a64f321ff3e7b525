from __future__ import annotations

import json

import pytest

from conftest import build_record
from showcase_api.services.lifecycle import SubmissionStatus
from showcase_api.services.mapping import (
    SUBMISSION_COLUMNS,
    UnknownFieldError,
    changes_to_row,
    project_to_json,
    record_to_row,
    row_to_record,
)
from showcase_api.services.records import ContactLinks, ProjectRecord


def test_record_row_uses_storage_columns_and_camel_case_projects() -> None:
    record = build_record()
    row = record_to_row(record)

    assert tuple(row) == SUBMISSION_COLUMNS
    assert row["github"] == "https://github.com/analee"
    assert row["status"] == "pending"
    assert row["projects"] == [
        {
            "title": "Course Planner",
            "description": record.projects[0].description,
            "technologies": ["Python", "FastAPI"],
            "semester": "Fall 2025",
            "featured": False,
            "canEmbed": True,
        }
    ]


def test_row_to_record_accepts_projects_as_json_text() -> None:
    row = record_to_row(build_record())
    row["projects"] = json.dumps(row["projects"])

    record = row_to_record(row)

    assert record.projects[0].title == "Course Planner"
    assert record.contact.github == "https://github.com/analee"
    assert record.status == SubmissionStatus.PENDING


def test_project_json_omits_missing_optional_fields() -> None:
    payload = project_to_json(
        ProjectRecord(title="Demo", description="x" * 50, technologies=["Go"], semester="Spring", demo_url=None)
    )
    assert "demoUrl" not in payload
    assert payload["canEmbed"] is True


def test_changes_to_row_flattens_contact_and_status() -> None:
    row = changes_to_row(
        {
            "status": "approved",
            "contact": ContactLinks(website="https://ana.dev"),
            "pr_number": 12,
        }
    )
    assert row == {
        "status": "approved",
        "website": "https://ana.dev",
        "github": None,
        "linkedin": None,
        "twitter": None,
        "pr_number": 12,
    }


def test_changes_to_row_rejects_store_managed_and_unknown_fields() -> None:
    with pytest.raises(UnknownFieldError) as exc_info:
        changes_to_row({"id": "x", "nickname": "ana"})
    assert exc_info.value.names == ["id", "nickname"]


def test_row_mapping_round_trip_reproduces_record() -> None:
    record = build_record(status=SubmissionStatus.PR_CREATED, pr_url="https://github.com/o/r/pull/5", pr_number=5)
    record.contact = ContactLinks(website="https://ana.dev", linkedin="https://linkedin.com/in/ana")
    record.projects[0].featured = True
    record.projects[0].demo_url = "https://planner.ana.dev"

    assert row_to_record(record_to_row(record)) == record
