from __future__ import annotations

import logging
from typing import Any

from showcase_api.services.lifecycle import SubmissionStatus
from showcase_api.services.records import SubmissionRecord
from showcase_api.services.repository import SubmissionRepository
from showcase_api.services.validation import validate_submission

logger = logging.getLogger(__name__)


class SubmissionRejectedError(Exception):
    """Raised when an intake document fails validation."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__("Validation failed")
        self.errors = errors


class DuplicatePendingSubmissionError(Exception):
    """Raised when the email already has a submission awaiting review."""

    def __init__(self, existing_id: str) -> None:
        super().__init__("You already have a pending submission. Please wait for review.")
        self.existing_id = existing_id


async def submit(repository: SubmissionRepository, document: Any) -> SubmissionRecord:
    validation = validate_submission(document)
    if validation.draft is None:
        raise SubmissionRejectedError(validation.errors)
    draft = validation.draft

    # Read-then-write: concurrent intakes for one email can both pass this check.
    existing = (await repository.get_by_email(draft.email)).unwrap()
    if existing is not None and existing.status == SubmissionStatus.PENDING:
        raise DuplicatePendingSubmissionError(existing.id)

    record = (await repository.create(draft, SubmissionStatus.PENDING)).unwrap()
    logger.info("submission received id=%s projects=%s", record.id, len(record.projects))
    return record
