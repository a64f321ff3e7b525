from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    TypeAdapter,
    ValidationError,
)
from pydantic.alias_generators import to_camel

from showcase_api.services.lifecycle import SubmissionStatus
from showcase_api.services.records import (
    MAX_PROJECTS,
    ContactLinks,
    ProjectRecord,
    SubmissionDraft,
    SubmissionRecord,
)
from showcase_api.services.stats import SubmissionStats

MIN_GRADUATION_YEAR = 2020
MAX_GRADUATION_YEAR = 2035

_URL_ADAPTER = TypeAdapter(AnyUrl)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _check_url(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError as exc:
        raise ValueError("must be a valid URL") from exc
    return value


def _strip_items(values: list[str]) -> list[str]:
    items = [item.strip() for item in values if item.strip()]
    if not items:
        raise ValueError("must contain at least one non-empty entry")
    return items


OptionalUrl = Annotated[str | None, BeforeValidator(_blank_to_none), AfterValidator(_check_url)]
OptionalText = Annotated[str | None, BeforeValidator(_blank_to_none)]
PersonalStatement = Annotated[Annotated[str, Field(max_length=1000)] | None, BeforeValidator(_blank_to_none)]
CareerGoals = Annotated[Annotated[str, Field(max_length=300)] | None, BeforeValidator(_blank_to_none)]
TagList = Annotated[list[str], AfterValidator(_strip_items)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )


class ProjectIn(CamelModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=50, max_length=500)
    technologies: TagList
    demo_url: OptionalUrl = None
    repo_url: OptionalUrl = None
    screenshot_data: OptionalText = None
    screenshot_url: OptionalText = None
    semester: str
    completed_date: OptionalText = None
    featured: bool = False
    can_embed: bool = True

    def to_record(self) -> ProjectRecord:
        return ProjectRecord(
            title=self.title,
            description=self.description,
            technologies=list(self.technologies),
            semester=self.semester,
            demo_url=self.demo_url,
            repo_url=self.repo_url,
            screenshot_data=self.screenshot_data,
            screenshot_url=self.screenshot_url,
            completed_date=self.completed_date,
            featured=self.featured,
            can_embed=self.can_embed,
        )


class SubmissionIn(CamelModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    bio: str = Field(min_length=50, max_length=500)
    personal_statement: PersonalStatement = None
    skills: TagList
    career_goals: CareerGoals = None
    major: OptionalText = None
    graduation_year: int | None = Field(default=None, ge=MIN_GRADUATION_YEAR, le=MAX_GRADUATION_YEAR)
    website: OptionalUrl = None
    github: OptionalUrl = None
    linkedin: OptionalUrl = None
    twitter: OptionalUrl = None
    photo_data: OptionalText = None
    photo_url: OptionalText = None
    projects: list[ProjectIn] = Field(min_length=1, max_length=MAX_PROJECTS)

    def to_draft(self) -> SubmissionDraft:
        return SubmissionDraft(
            first_name=self.first_name,
            last_name=self.last_name,
            email=str(self.email).lower(),
            bio=self.bio,
            personal_statement=self.personal_statement,
            skills=list(self.skills),
            career_goals=self.career_goals,
            major=self.major,
            graduation_year=self.graduation_year,
            contact=ContactLinks(
                website=self.website,
                github=self.github,
                linkedin=self.linkedin,
                twitter=self.twitter,
            ),
            photo_data=self.photo_data,
            photo_url=self.photo_url,
            projects=[project.to_record() for project in self.projects],
        )


class ProjectOut(CamelModel):
    title: str
    description: str
    technologies: list[str] = Field(default_factory=list)
    demo_url: str | None = None
    repo_url: str | None = None
    screenshot_data: str | None = None
    screenshot_url: str | None = None
    semester: str
    completed_date: str | None = None
    featured: bool = False
    can_embed: bool = True


class SubmissionOut(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    bio: str
    personal_statement: str | None = None
    skills: list[str] = Field(default_factory=list)
    career_goals: str | None = None
    major: str | None = None
    graduation_year: int | None = None
    website: str | None = None
    github: str | None = None
    linkedin: str | None = None
    twitter: str | None = None
    photo_data: str | None = None
    photo_url: str | None = None
    projects: list[ProjectOut] = Field(default_factory=list)
    status: SubmissionStatus
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None
    review_notes: str | None = None
    pr_url: str | None = None
    pr_number: int | None = None
    created_at: datetime = Field(alias="created_at")
    updated_at: datetime = Field(alias="updated_at")

    @classmethod
    def from_record(cls, record: SubmissionRecord) -> SubmissionOut:
        return cls(
            id=record.id,
            first_name=record.first_name,
            last_name=record.last_name,
            email=record.email,
            bio=record.bio,
            personal_statement=record.personal_statement,
            skills=list(record.skills),
            career_goals=record.career_goals,
            major=record.major,
            graduation_year=record.graduation_year,
            website=record.contact.website,
            github=record.contact.github,
            linkedin=record.contact.linkedin,
            twitter=record.contact.twitter,
            photo_data=record.photo_data,
            photo_url=record.photo_url,
            projects=[
                ProjectOut(
                    title=project.title,
                    description=project.description,
                    technologies=list(project.technologies),
                    demo_url=project.demo_url,
                    repo_url=project.repo_url,
                    screenshot_data=project.screenshot_data,
                    screenshot_url=project.screenshot_url,
                    semester=project.semester,
                    completed_date=project.completed_date,
                    featured=project.featured,
                    can_embed=project.can_embed,
                )
                for project in record.projects
            ],
            status=record.status,
            submitted_at=record.submitted_at,
            reviewed_at=record.reviewed_at,
            reviewed_by=record.reviewed_by,
            review_notes=record.review_notes,
            pr_url=record.pr_url,
            pr_number=record.pr_number,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class SubmissionCreated(BaseModel):
    message: str
    id: str


class SubmissionListOut(BaseModel):
    submissions: list[SubmissionOut]
    total: int
    limit: int
    offset: int


class SubmissionPatchRequest(CamelModel):
    status: SubmissionStatus | None = None
    review_notes: str | None = None
    reviewed_by: str | None = None
    pr_url: str | None = None
    pr_number: int | None = Field(default=None, ge=1)


class SubmissionUpdatedOut(BaseModel):
    message: str
    submission: SubmissionOut


class ApproveRequest(CamelModel):
    review_notes: str | None = None
    reviewed_by: str | None = None


class ApproveOut(CamelModel):
    message: str
    submission: SubmissionOut
    pr_triggered: bool
    retried: bool = False
    pr_url: str | None = None
    pr_number: int | None = None
    error: str | None = None


class MessageOut(BaseModel):
    message: str


class StatsOut(BaseModel):
    pending: int
    approved: int
    rejected: int
    pr_created: int
    merged: int
    total: int

    @classmethod
    def from_stats(cls, stats: SubmissionStats) -> StatsOut:
        return cls(
            pending=stats.pending,
            approved=stats.approved,
            rejected=stats.rejected,
            pr_created=stats.pr_created,
            merged=stats.merged,
            total=stats.total,
        )
