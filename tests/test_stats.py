from __future__ import annotations

import asyncio

import pytest

from conftest import build_record
from showcase_api.services.lifecycle import SubmissionStatus
from showcase_api.services.memory_repository import InMemorySubmissionRepository
from showcase_api.services.repository import RepositoryResult, RepositoryUnavailableError
from showcase_api.services.stats import SubmissionStats, collect_stats


def test_collect_stats_counts_each_status() -> None:
    repository = InMemorySubmissionRepository()
    statuses = [
        SubmissionStatus.PENDING,
        SubmissionStatus.PENDING,
        SubmissionStatus.APPROVED,
        SubmissionStatus.MERGED,
    ]
    for index, status in enumerate(statuses):
        repository.seed(build_record(submission_id=f"s-{index}", status=status))

    stats = asyncio.run(collect_stats(repository))

    assert stats == SubmissionStats(pending=2, approved=1, merged=1)
    assert stats.total == 4


def test_collect_stats_on_empty_store() -> None:
    stats = asyncio.run(collect_stats(InMemorySubmissionRepository()))
    assert stats.total == 0


def test_collect_stats_raises_repository_error() -> None:
    class BrokenRepository(InMemorySubmissionRepository):
        async def count_by_status(self) -> RepositoryResult:
            return RepositoryResult(error=RepositoryUnavailableError("database unavailable"))

    with pytest.raises(RepositoryUnavailableError):
        asyncio.run(collect_stats(BrokenRepository()))
