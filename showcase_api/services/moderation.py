from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from opentelemetry import trace

from showcase_api.core.telemetry import annotate_submission
from showcase_api.services.dispatch import DispatchResult
from showcase_api.services.lifecycle import (
    InvalidTransitionError,
    SubmissionStatus,
    awaiting_pull_request,
    is_reachable,
    validate_transition,
)
from showcase_api.services.records import SubmissionRecord
from showcase_api.services.repository import SubmissionRepository

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

PULL_REQUEST_STATUSES = frozenset({SubmissionStatus.PR_CREATED, SubmissionStatus.MERGED})


class ModerationError(Exception):
    """Base moderation error."""


class ModerationConflictError(ModerationError):
    """Raised when the submission's current status does not allow the action."""

    def __init__(self, message: str, *, current_status: SubmissionStatus) -> None:
        super().__init__(message)
        self.current_status = current_status


class ModerationValidationError(ModerationError):
    """Raised when a moderation request is incomplete."""


class PullRequestDispatcher(Protocol):
    async def dispatch(self, record: SubmissionRecord) -> DispatchResult: ...


@dataclass(slots=True)
class ApprovalOutcome:
    record: SubmissionRecord
    dispatch: DispatchResult
    retried: bool = False


class ModerationService:
    def __init__(self, repository: SubmissionRepository, dispatcher: PullRequestDispatcher) -> None:
        self.repository = repository
        self.dispatcher = dispatcher

    async def approve(
        self,
        submission_id: str,
        *,
        review_notes: str | None = None,
        reviewed_by: str | None = None,
    ) -> ApprovalOutcome:
        """Approve a pending submission and ask the automation to open its PR.

        The approval is committed before the dispatch call and is never rolled
        back. An ``approved`` submission without a PR reference may be approved
        again, which only re-sends the dispatch.
        """
        with tracer.start_as_current_span("submission.approve") as span:
            span.set_attribute("submission.id", submission_id)
            record = (await self.repository.get_by_id(submission_id)).unwrap()
            annotate_submission(span, record)

            retried = False
            if record.status == SubmissionStatus.PENDING:
                record = (
                    await self.repository.update_status(
                        submission_id,
                        SubmissionStatus.APPROVED,
                        reviewed_by=reviewed_by,
                        review_notes=review_notes,
                    )
                ).unwrap()
                logger.info("submission approved id=%s reviewed_by=%s", submission_id, reviewed_by)
            elif awaiting_pull_request(record):
                retried = True
                logger.info("retrying pull request dispatch for approved submission id=%s", submission_id)
            else:
                raise ModerationConflictError(
                    f"Submission is already {record.status.value}",
                    current_status=record.status,
                )

            dispatch = await self.dispatcher.dispatch(record)
            span.set_attribute("submission.dispatch_ok", dispatch.ok)
            if not dispatch.ok:
                logger.warning(
                    "submission approved but pull request dispatch failed id=%s error=%s",
                    submission_id,
                    dispatch.error,
                )
            return ApprovalOutcome(record=record, dispatch=dispatch, retried=retried)

    async def reject(
        self,
        submission_id: str,
        *,
        review_notes: str | None,
        reviewed_by: str | None = None,
    ) -> SubmissionRecord:
        # Rejection is allowed from any status.
        if not review_notes or not review_notes.strip():
            raise ModerationValidationError("reviewNotes is required when rejecting a submission")

        record = (
            await self.repository.update_status(
                submission_id,
                SubmissionStatus.REJECTED,
                reviewed_by=reviewed_by,
                review_notes=review_notes.strip(),
            )
        ).unwrap()
        logger.info("submission rejected id=%s reviewed_by=%s", submission_id, reviewed_by)
        return record

    async def delete(self, submission_id: str) -> bool:
        deleted = (await self.repository.delete(submission_id)).unwrap()
        logger.info("submission deleted id=%s", submission_id)
        return deleted

    async def change_status(
        self,
        submission_id: str,
        status: SubmissionStatus,
        *,
        review_notes: str | None = None,
        reviewed_by: str | None = None,
    ) -> SubmissionRecord:
        if status == SubmissionStatus.REJECTED:
            return await self.reject(submission_id, review_notes=review_notes, reviewed_by=reviewed_by)
        if status in PULL_REQUEST_STATUSES:
            return await self.record_pull_request(submission_id, status=status)

        record = (await self.repository.get_by_id(submission_id)).unwrap()
        if record.status == status:
            return record
        try:
            validate_transition(record.status, status)
        except InvalidTransitionError as exc:
            raise ModerationConflictError(str(exc), current_status=record.status) from exc

        updated = (
            await self.repository.update_status(
                submission_id,
                status,
                reviewed_by=reviewed_by,
                review_notes=review_notes,
            )
        ).unwrap()
        logger.info("submission status changed id=%s from=%s to=%s", submission_id, record.status.value, status.value)
        return updated

    async def record_pull_request(
        self,
        submission_id: str,
        *,
        pr_url: str | None = None,
        pr_number: int | None = None,
        status: SubmissionStatus | None = None,
    ) -> SubmissionRecord:
        """Store the PR reported by the automation and advance the status."""
        target = status or SubmissionStatus.PR_CREATED
        if target not in PULL_REQUEST_STATUSES:
            raise ModerationValidationError("pull request reports may only set pr_created or merged")

        record = (await self.repository.get_by_id(submission_id)).unwrap()
        # Only approved submissions have a PR to report.
        if record.status == SubmissionStatus.PENDING or not is_reachable(record.status, target):
            raise ModerationConflictError(
                f"invalid status transition: {record.status.value} -> {target.value}",
                current_status=record.status,
            )

        changes: dict[str, object] = {"status": target}
        if pr_url:
            changes["pr_url"] = pr_url
        if pr_number is not None:
            changes["pr_number"] = pr_number
        updated = (await self.repository.update(submission_id, changes)).unwrap()
        logger.info(
            "submission pull request recorded id=%s status=%s pr_number=%s",
            submission_id,
            target.value,
            updated.pr_number,
        )
        return updated
