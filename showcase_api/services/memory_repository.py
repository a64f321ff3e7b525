from __future__ import annotations

import copy
from collections import Counter
from datetime import datetime
from typing import Any
from uuid import uuid4

from showcase_api.services.lifecycle import SubmissionStatus
from showcase_api.services.mapping import draft_to_row, record_to_row, row_to_record
from showcase_api.services.records import ListOptions, SubmissionDraft, SubmissionPage, SubmissionRecord
from showcase_api.services.repository import RepositoryNotFoundError, SubmissionRepository


class InMemorySubmissionRepository(SubmissionRepository):
    """Process-local backend for development and tests.

    Hooks never await, so each operation runs atomically on the event loop.
    """

    def __init__(self) -> None:
        self._rows: dict[str, dict[str, Any]] = {}
        self._sequence = 0

    async def _create(self, draft: SubmissionDraft, status: SubmissionStatus, now: datetime) -> SubmissionRecord:
        self._sequence += 1
        row = draft_to_row(draft)
        row.update(
            {
                "id": str(uuid4()),
                "status": status.value,
                "submitted_at": now,
                "reviewed_at": None,
                "reviewed_by": None,
                "review_notes": None,
                "pr_url": None,
                "pr_number": None,
                "created_at": now,
                "updated_at": now,
                "_sequence": self._sequence,
            }
        )
        self._rows[row["id"]] = row
        return self._snapshot(row)

    async def _get_by_id(self, submission_id: str) -> SubmissionRecord:
        row = self._rows.get(submission_id)
        if row is None:
            raise RepositoryNotFoundError("submission not found")
        return self._snapshot(row)

    async def _get_by_email(self, email: str) -> SubmissionRecord | None:
        matches = [row for row in self._rows.values() if row["email"] == email]
        if not matches:
            return None
        return self._snapshot(max(matches, key=self._creation_key))

    async def _list(self, options: ListOptions) -> SubmissionPage:
        rows = list(self._rows.values())
        if options.status is not None:
            rows = [row for row in rows if row["status"] == options.status.value]

        reverse = options.order_direction == "desc"
        if options.order_by == "created_at":
            rows.sort(key=self._creation_key, reverse=reverse)
        else:
            present = [row for row in rows if row[options.order_by] is not None]
            missing = [row for row in rows if row[options.order_by] is None]
            present.sort(key=lambda row: (self._sort_value(row, options.order_by), row["_sequence"]), reverse=reverse)
            # Postgres puts nulls first for desc and last for asc.
            rows = missing + present if reverse else present + missing

        window = rows[options.offset : options.offset + options.limit]
        return SubmissionPage(records=[self._snapshot(row) for row in window], total=len(rows))

    async def _update(self, submission_id: str, columns: dict[str, Any], now: datetime) -> SubmissionRecord:
        row = self._rows.get(submission_id)
        if row is None:
            raise RepositoryNotFoundError("submission not found")
        row.update(copy.deepcopy(columns))
        row["updated_at"] = now
        return self._snapshot(row)

    async def _delete(self, submission_id: str) -> bool:
        if self._rows.pop(submission_id, None) is None:
            raise RepositoryNotFoundError("submission not found")
        return True

    async def _count_by_status(self) -> dict[SubmissionStatus, int]:
        counts = Counter(row["status"] for row in self._rows.values())
        return {status: counts.get(status.value, 0) for status in SubmissionStatus}

    def seed(self, record: SubmissionRecord) -> None:
        self._sequence += 1
        row = record_to_row(record)
        row["_sequence"] = self._sequence
        self._rows[record.id] = copy.deepcopy(row)

    @staticmethod
    def _sort_value(row: dict[str, Any], column: str) -> Any:
        # Matches the Postgres backend, which orders names by lower(last_name).
        value = row[column]
        return value.lower() if column == "last_name" else value

    @staticmethod
    def _creation_key(row: dict[str, Any]) -> tuple[datetime, int]:
        return row["created_at"], row["_sequence"]

    @staticmethod
    def _snapshot(row: dict[str, Any]) -> SubmissionRecord:
        return row_to_record(copy.deepcopy(row))
