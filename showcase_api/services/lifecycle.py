from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from showcase_api.services.records import SubmissionRecord


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PR_CREATED = "pr_created"
    MERGED = "merged"


class InvalidTransitionError(ValueError):
    def __init__(self, from_status: SubmissionStatus, to_status: SubmissionStatus) -> None:
        super().__init__(f"invalid status transition: {from_status.value} -> {to_status.value}")
        self.from_status = from_status
        self.to_status = to_status


ALLOWED_TRANSITIONS: dict[SubmissionStatus, frozenset[SubmissionStatus]] = {
    SubmissionStatus.PENDING: frozenset({SubmissionStatus.APPROVED, SubmissionStatus.REJECTED}),
    SubmissionStatus.APPROVED: frozenset({SubmissionStatus.PR_CREATED}),
    SubmissionStatus.PR_CREATED: frozenset({SubmissionStatus.MERGED}),
    SubmissionStatus.REJECTED: frozenset(),
    SubmissionStatus.MERGED: frozenset(),
}


def coerce_status(value: SubmissionStatus | str) -> SubmissionStatus:
    if isinstance(value, SubmissionStatus):
        return value
    return SubmissionStatus(value)


def can_transition(from_status: SubmissionStatus, to_status: SubmissionStatus) -> bool:
    if from_status == to_status:
        return True
    return to_status in ALLOWED_TRANSITIONS[from_status]


def validate_transition(from_status: SubmissionStatus, to_status: SubmissionStatus) -> None:
    if not can_transition(from_status, to_status):
        raise InvalidTransitionError(from_status, to_status)


def is_reachable(from_status: SubmissionStatus, to_status: SubmissionStatus) -> bool:
    frontier = [from_status]
    seen: set[SubmissionStatus] = set()
    while frontier:
        current = frontier.pop()
        if current == to_status:
            return True
        if current in seen:
            continue
        seen.add(current)
        frontier.extend(ALLOWED_TRANSITIONS[current])
    return False


def is_terminal(status: SubmissionStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


def awaiting_pull_request(record: SubmissionRecord) -> bool:
    """Approved records without a PR reference can have the dispatch retried."""
    return record.status == SubmissionStatus.APPROVED and not record.pr_url
