from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from showcase_api.services.lifecycle import SubmissionStatus
from showcase_api.services.records import ContactLinks, ProjectRecord, SubmissionRecord

LONG_BIO = "I build accessible web tools and enjoy teaching peers how to ship them well."
LONG_DESCRIPTION = "A course planner that maps prerequisites and suggests balanced semester loads."


def build_document(**overrides: Any) -> dict[str, Any]:
    document: dict[str, Any] = {
        "firstName": "Ana",
        "lastName": "Lee",
        "email": "ana@uni.edu",
        "bio": LONG_BIO,
        "skills": ["Python", "React"],
        "graduationYear": 2026,
        "github": "https://github.com/analee",
        "projects": [
            {
                "title": "Course Planner",
                "description": LONG_DESCRIPTION,
                "technologies": ["Python", "FastAPI"],
                "semester": "Fall 2025",
                "repoUrl": "https://github.com/analee/planner",
            }
        ],
    }
    document.update(overrides)
    return document


def build_record(
    *,
    submission_id: str = "11111111-1111-1111-1111-111111111111",
    email: str = "ana@uni.edu",
    status: SubmissionStatus = SubmissionStatus.PENDING,
    created_at: datetime | None = None,
    pr_url: str | None = None,
    pr_number: int | None = None,
) -> SubmissionRecord:
    now = created_at or datetime(2025, 10, 1, 12, 0, tzinfo=timezone.utc)
    return SubmissionRecord(
        id=submission_id,
        first_name="Ana",
        last_name="Lee",
        email=email,
        bio=LONG_BIO,
        skills=["Python", "React"],
        contact=ContactLinks(github="https://github.com/analee"),
        projects=[
            ProjectRecord(
                title="Course Planner",
                description=LONG_DESCRIPTION,
                technologies=["Python", "FastAPI"],
                semester="Fall 2025",
            )
        ],
        status=status,
        submitted_at=now,
        pr_url=pr_url,
        pr_number=pr_number,
        created_at=now,
        updated_at=now + timedelta(seconds=1),
    )


@pytest.fixture
def submission_document() -> dict[str, Any]:
    return build_document()
