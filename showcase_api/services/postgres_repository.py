from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from showcase_api.services.lifecycle import SubmissionStatus
from showcase_api.services.mapping import SUBMISSION_COLUMNS, draft_to_row, row_to_record
from showcase_api.services.records import ListOptions, SubmissionDraft, SubmissionPage, SubmissionRecord
from showcase_api.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryStorageError,
    RepositoryUnavailableError,
    SubmissionRepository,
)

SELECT_COLUMNS = ",\n  ".join(
    {
        "id": "id::text as id",
        "status": "status::text as status",
    }.get(column, column)
    for column in SUBMISSION_COLUMNS
)
COLUMN_CASTS = {
    "status": "::submission_status",
    "projects": "::jsonb",
    "skills": "::text[]",
}


class PostgresSubmissionRepository(SubmissionRepository):
    def __init__(
        self,
        database_url: str | None,
        min_pool_size: int,
        max_pool_size: int,
        command_timeout_seconds: float = 15.0,
    ) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.command_timeout_seconds = command_timeout_seconds
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def _create(self, draft: SubmissionDraft, status: SubmissionStatus, now: datetime) -> SubmissionRecord:
        values = draft_to_row(draft)
        values.update({"status": status.value, "submitted_at": now, "created_at": now, "updated_at": now})
        columns = list(values)
        placeholders = ", ".join(f"${index}{COLUMN_CASTS.get(column, '')}" for index, column in enumerate(columns, 1))
        pool = await self._get_pool()
        with self._translate_errors():
            row = await pool.fetchrow(
                f"""
                insert into submissions ({", ".join(columns)})
                values ({placeholders})
                returning
                  {SELECT_COLUMNS}
                """,
                *(self._encode(column, values[column]) for column in columns),
            )
        if not row:
            raise RepositoryStorageError("failed to create submission")
        return row_to_record(row)

    async def _get_by_id(self, submission_id: str) -> SubmissionRecord:
        pool = await self._get_pool()
        with self._translate_errors():
            row = await pool.fetchrow(
                f"""
                select
                  {SELECT_COLUMNS}
                from submissions
                where id = $1::uuid
                """,
                submission_id,
            )
        if not row:
            raise RepositoryNotFoundError("submission not found")
        return row_to_record(row)

    async def _get_by_email(self, email: str) -> SubmissionRecord | None:
        pool = await self._get_pool()
        with self._translate_errors():
            row = await pool.fetchrow(
                f"""
                select
                  {SELECT_COLUMNS}
                from submissions
                where lower(email) = $1
                order by created_at desc
                limit 1
                """,
                email,
            )
        return row_to_record(row) if row else None

    async def _list(self, options: ListOptions) -> SubmissionPage:
        status = options.status.value if options.status is not None else None
        direction = "asc" if options.order_direction == "asc" else "desc"
        order_expr = self._resolve_sort_expr(options.order_by)
        pool = await self._get_pool()
        with self._translate_errors():
            async with pool.acquire() as conn:
                total = await conn.fetchval(
                    """
                    select count(*)
                    from submissions
                    where ($1::text is null or status::text = $1::text)
                    """,
                    status,
                )
                rows = await conn.fetch(
                    f"""
                    select
                      {SELECT_COLUMNS}
                    from submissions
                    where ($3::text is null or status::text = $3::text)
                    order by {order_expr} {direction}, id {direction}
                    limit $1
                    offset $2
                    """,
                    options.limit,
                    options.offset,
                    status,
                )
        return SubmissionPage(records=[row_to_record(row) for row in rows], total=int(total or 0))

    async def _update(self, submission_id: str, columns: dict[str, Any], now: datetime) -> SubmissionRecord:
        values = dict(columns)
        values["updated_at"] = now
        names = list(values)
        assignments = ",\n                  ".join(
            f"{name} = ${index}{COLUMN_CASTS.get(name, '')}" for index, name in enumerate(names, 2)
        )
        pool = await self._get_pool()
        with self._translate_errors():
            row = await pool.fetchrow(
                f"""
                update submissions
                set
                  {assignments}
                where id = $1::uuid
                returning
                  {SELECT_COLUMNS}
                """,
                submission_id,
                *(self._encode(name, values[name]) for name in names),
            )
        if not row:
            raise RepositoryNotFoundError("submission not found")
        return row_to_record(row)

    async def _delete(self, submission_id: str) -> bool:
        pool = await self._get_pool()
        with self._translate_errors():
            deleted_id = await pool.fetchval(
                """
                delete from submissions
                where id = $1::uuid
                returning id::text
                """,
                submission_id,
            )
        if not deleted_id:
            raise RepositoryNotFoundError("submission not found")
        return True

    async def _count_by_status(self) -> dict[SubmissionStatus, int]:
        pool = await self._get_pool()
        with self._translate_errors():
            rows = await pool.fetch(
                """
                select status::text as status, count(*) as count
                from submissions
                group by status
                """
            )
        counts = {status: 0 for status in SubmissionStatus}
        for row in rows:
            counts[SubmissionStatus(row["status"])] = int(row["count"])
        return counts

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("SPS_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=self.command_timeout_seconds,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise RepositoryUnavailableError("database unavailable") from exc

    @staticmethod
    @contextmanager
    def _translate_errors() -> Iterator[None]:
        try:
            yield
        except (pg_exc.InvalidTextRepresentationError, asyncpg.DataError) as exc:
            # Malformed ids never match a row; asyncpg rejects them before sending.
            raise RepositoryNotFoundError("submission not found") from exc
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError("submission already exists") from exc
        except (OSError, TimeoutError, asyncpg.InterfaceError) as exc:
            raise RepositoryUnavailableError("database unavailable") from exc
        except asyncpg.PostgresError as exc:
            raise RepositoryStorageError(f"database rejected operation: {exc}") from exc

    @staticmethod
    def _encode(column: str, value: Any) -> Any:
        if column == "projects":
            return json.dumps(value or [])
        return value

    @staticmethod
    def _resolve_sort_expr(order_by: str) -> str:
        sort_map = {
            "created_at": "created_at",
            "updated_at": "updated_at",
            "submitted_at": "submitted_at",
            "reviewed_at": "reviewed_at",
            "last_name": "lower(last_name)",
        }
        return sort_map.get(order_by, "created_at")
