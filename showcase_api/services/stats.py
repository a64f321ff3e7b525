from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from showcase_api.services.lifecycle import SubmissionStatus

if TYPE_CHECKING:
    from showcase_api.services.repository import SubmissionRepository


@dataclass(slots=True, frozen=True)
class SubmissionStats:
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    pr_created: int = 0
    merged: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.approved + self.rejected + self.pr_created + self.merged

    @classmethod
    def from_counts(cls, counts: dict[SubmissionStatus, int]) -> SubmissionStats:
        return cls(**{status.value: int(counts.get(status, 0)) for status in SubmissionStatus})


async def collect_stats(repository: SubmissionRepository) -> SubmissionStats:
    """Raises the repository's error when counting fails."""
    counts = (await repository.count_by_status()).unwrap()
    return SubmissionStats.from_counts(counts)
