from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from fastapi import Request

from showcase_api.services.lifecycle import SubmissionStatus, coerce_status
from showcase_api.services.mapping import UnknownFieldError, changes_to_row
from showcase_api.services.records import ListOptions, SubmissionDraft, SubmissionPage, SubmissionRecord

if TYPE_CHECKING:
    from showcase_api.core.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

SORTABLE_COLUMNS = frozenset({"created_at", "updated_at", "submitted_at", "reviewed_at", "last_name"})
SORT_DIRECTIONS = frozenset({"asc", "desc"})


class RepositoryError(Exception):
    """Base repository error."""


class RepositoryUnavailableError(RepositoryError):
    """Raised when the database is unavailable or not configured."""


class RepositoryStorageError(RepositoryError):
    """Raised when the backend rejects or fails an operation."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when the requested entity does not exist."""


class RepositoryConflictError(RepositoryError):
    """Raised when an operation conflicts with stored state."""


class RepositoryValidationError(RepositoryError):
    """Raised when payload validation fails before persistence."""


@dataclass(slots=True)
class RepositoryResult(Generic[T]):
    data: T | None = None
    error: RepositoryError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.data  # type: ignore[return-value]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def _capture(operation: str, awaitable: Awaitable[T]) -> RepositoryResult[T]:
    try:
        return RepositoryResult(data=await awaitable)
    except RepositoryError as exc:
        return RepositoryResult(error=exc)
    except Exception as exc:
        logger.exception("submission repository operation failed op=%s", operation)
        return RepositoryResult(error=RepositoryStorageError(f"{operation} failed: {exc}"))


class SubmissionRepository(ABC):
    """Persistence contract for portfolio submissions.

    Public operations never raise: each returns a ``RepositoryResult`` carrying
    either the value or a ``RepositoryError``. Backends implement the
    underscore-prefixed hooks and may raise freely inside them.
    """

    async def create(
        self,
        draft: SubmissionDraft,
        status: SubmissionStatus | None = None,
    ) -> RepositoryResult[SubmissionRecord]:
        return await _capture("create", self._create(draft, status or SubmissionStatus.PENDING, utcnow()))

    async def get_by_id(self, submission_id: str) -> RepositoryResult[SubmissionRecord]:
        return await _capture("get_by_id", self._get_by_id(submission_id))

    async def get_by_email(self, email: str) -> RepositoryResult[SubmissionRecord | None]:
        return await _capture("get_by_email", self._get_by_email(email.strip().lower()))

    async def list_submissions(self, options: ListOptions | None = None) -> RepositoryResult[SubmissionPage]:
        return await _capture("list", self._run_list(options or ListOptions()))

    async def update(self, submission_id: str, changes: Mapping[str, Any]) -> RepositoryResult[SubmissionRecord]:
        return await _capture("update", self._run_update(submission_id, changes))

    async def update_status(
        self,
        submission_id: str,
        status: SubmissionStatus | str,
        *,
        reviewed_by: str | None = None,
        review_notes: str | None = None,
    ) -> RepositoryResult[SubmissionRecord]:
        return await _capture(
            "update_status",
            self._run_update_status(submission_id, status, reviewed_by=reviewed_by, review_notes=review_notes),
        )

    async def delete(self, submission_id: str) -> RepositoryResult[bool]:
        return await _capture("delete", self._delete(submission_id))

    async def count_by_status(self) -> RepositoryResult[dict[SubmissionStatus, int]]:
        return await _capture("count_by_status", self._run_count_by_status())

    async def close(self) -> None:
        return None

    async def _run_list(self, options: ListOptions) -> SubmissionPage:
        if options.status is not None:
            try:
                options = replace(options, status=coerce_status(options.status))
            except ValueError as exc:
                raise RepositoryValidationError(f"invalid submission status: {options.status}") from exc
        if options.limit < 1:
            raise RepositoryValidationError("limit must be a positive integer")
        if options.offset < 0:
            raise RepositoryValidationError("offset must be zero or greater")
        if options.order_by not in SORTABLE_COLUMNS:
            raise RepositoryValidationError(f"unsupported order column: {options.order_by}")
        if options.order_direction not in SORT_DIRECTIONS:
            raise RepositoryValidationError("order direction must be asc or desc")
        return await self._list(options)

    async def _run_update(self, submission_id: str, changes: Mapping[str, Any]) -> SubmissionRecord:
        try:
            columns = changes_to_row(changes)
        except (UnknownFieldError, ValueError, TypeError) as exc:
            raise RepositoryValidationError(str(exc)) from exc
        if "email" in columns and isinstance(columns["email"], str):
            columns["email"] = columns["email"].strip().lower()
        return await self._update(submission_id, columns, utcnow())

    async def _run_update_status(
        self,
        submission_id: str,
        status: SubmissionStatus | str,
        *,
        reviewed_by: str | None,
        review_notes: str | None,
    ) -> SubmissionRecord:
        try:
            normalized = coerce_status(status)
        except ValueError as exc:
            raise RepositoryValidationError(f"invalid submission status: {status}") from exc
        now = utcnow()
        return await self._update(
            submission_id,
            {
                "status": normalized.value,
                "reviewed_at": now,
                "reviewed_by": reviewed_by,
                "review_notes": review_notes,
            },
            now,
        )

    async def _run_count_by_status(self) -> dict[SubmissionStatus, int]:
        raw = await self._count_by_status()
        return {status: int(raw.get(status, 0)) for status in SubmissionStatus}

    @abstractmethod
    async def _create(self, draft: SubmissionDraft, status: SubmissionStatus, now: datetime) -> SubmissionRecord:
        ...

    @abstractmethod
    async def _get_by_id(self, submission_id: str) -> SubmissionRecord:
        ...

    @abstractmethod
    async def _get_by_email(self, email: str) -> SubmissionRecord | None:
        ...

    @abstractmethod
    async def _list(self, options: ListOptions) -> SubmissionPage:
        ...

    @abstractmethod
    async def _update(self, submission_id: str, columns: dict[str, Any], now: datetime) -> SubmissionRecord:
        ...

    @abstractmethod
    async def _delete(self, submission_id: str) -> bool:
        ...

    @abstractmethod
    async def _count_by_status(self) -> Mapping[SubmissionStatus, int]:
        ...


def build_repository(settings: Settings) -> SubmissionRepository:
    if settings.database_backend == "memory":
        from showcase_api.services.memory_repository import InMemorySubmissionRepository

        return InMemorySubmissionRepository()

    from showcase_api.services.postgres_repository import PostgresSubmissionRepository

    return PostgresSubmissionRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
        command_timeout_seconds=settings.database_command_timeout_seconds,
    )


def get_repository(request: Request) -> SubmissionRepository:
    return request.app.state.repository
