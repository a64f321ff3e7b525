from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from showcase_api.services.lifecycle import SubmissionStatus

MAX_PROJECTS = 6


@dataclass(slots=True, kw_only=True)
class ContactLinks:
    website: str | None = None
    github: str | None = None
    linkedin: str | None = None
    twitter: str | None = None


@dataclass(slots=True, kw_only=True)
class ProjectRecord:
    title: str
    description: str
    technologies: list[str]
    semester: str
    demo_url: str | None = None
    repo_url: str | None = None
    screenshot_data: str | None = None
    screenshot_url: str | None = None
    completed_date: str | None = None
    featured: bool = False
    can_embed: bool = True


@dataclass(slots=True, kw_only=True)
class SubmissionDraft:
    first_name: str
    last_name: str
    email: str
    bio: str
    skills: list[str]
    projects: list[ProjectRecord]
    personal_statement: str | None = None
    career_goals: str | None = None
    major: str | None = None
    graduation_year: int | None = None
    contact: ContactLinks = field(default_factory=ContactLinks)
    photo_data: str | None = None
    photo_url: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(slots=True, kw_only=True)
class SubmissionRecord(SubmissionDraft):
    id: str
    status: SubmissionStatus = SubmissionStatus.PENDING
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None
    review_notes: str | None = None
    pr_url: str | None = None
    pr_number: int | None = None
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True)
class ListOptions:
    status: SubmissionStatus | None = None
    limit: int = 20
    offset: int = 0
    order_by: str = "created_at"
    order_direction: str = "desc"


@dataclass(slots=True)
class SubmissionPage:
    records: list[SubmissionRecord]
    total: int
