from __future__ import annotations

import pytest

from conftest import build_record
from showcase_api.services.lifecycle import (
    InvalidTransitionError,
    SubmissionStatus,
    awaiting_pull_request,
    can_transition,
    coerce_status,
    is_reachable,
    is_terminal,
    validate_transition,
)


@pytest.mark.parametrize(
    ("from_status", "to_status"),
    [
        (SubmissionStatus.PENDING, SubmissionStatus.APPROVED),
        (SubmissionStatus.PENDING, SubmissionStatus.REJECTED),
        (SubmissionStatus.APPROVED, SubmissionStatus.PR_CREATED),
        (SubmissionStatus.PR_CREATED, SubmissionStatus.MERGED),
    ],
)
def test_forward_transitions_are_allowed(from_status: SubmissionStatus, to_status: SubmissionStatus) -> None:
    assert can_transition(from_status, to_status)
    validate_transition(from_status, to_status)


def test_terminal_states_have_no_exits() -> None:
    assert is_terminal(SubmissionStatus.REJECTED)
    assert is_terminal(SubmissionStatus.MERGED)
    assert not is_terminal(SubmissionStatus.APPROVED)
    assert not can_transition(SubmissionStatus.MERGED, SubmissionStatus.PENDING)


def test_invalid_transition_names_both_states() -> None:
    with pytest.raises(InvalidTransitionError) as exc_info:
        validate_transition(SubmissionStatus.PENDING, SubmissionStatus.MERGED)

    assert str(exc_info.value) == "invalid status transition: pending -> merged"
    assert exc_info.value.from_status == SubmissionStatus.PENDING


def test_is_reachable_walks_multiple_steps() -> None:
    assert is_reachable(SubmissionStatus.APPROVED, SubmissionStatus.MERGED)
    assert is_reachable(SubmissionStatus.PENDING, SubmissionStatus.MERGED)
    assert not is_reachable(SubmissionStatus.REJECTED, SubmissionStatus.PR_CREATED)
    assert not is_reachable(SubmissionStatus.MERGED, SubmissionStatus.APPROVED)


def test_coerce_status_rejects_unknown_values() -> None:
    assert coerce_status("pr_created") == SubmissionStatus.PR_CREATED
    with pytest.raises(ValueError):
        coerce_status("archived")


def test_awaiting_pull_request_requires_approved_without_pr_url() -> None:
    assert awaiting_pull_request(build_record(status=SubmissionStatus.APPROVED))
    assert not awaiting_pull_request(
        build_record(status=SubmissionStatus.APPROVED, pr_url="https://github.com/o/r/pull/9")
    )
    assert not awaiting_pull_request(build_record(status=SubmissionStatus.PENDING))
