from __future__ import annotations

import asyncio
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from conftest import build_document
from showcase_api.services.postgres_repository import PostgresSubmissionRepository
from showcase_api.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryStorageError,
    RepositoryUnavailableError,
)
from showcase_api.services.validation import validate_submission


class FailingPool:
    """Stands in for an asyncpg pool whose every query fails the same way."""

    def __init__(self, error: Exception) -> None:
        self.error = error

    async def fetchrow(self, *_: Any) -> Any:
        raise self.error

    async def fetchval(self, *_: Any) -> Any:
        raise self.error

    async def close(self) -> None:
        return None


def _repository(error: Exception) -> PostgresSubmissionRepository:
    repository = PostgresSubmissionRepository(
        database_url="postgresql://localhost/showcase",
        min_pool_size=1,
        max_pool_size=1,
    )
    repository._pool = FailingPool(error)  # type: ignore[assignment]
    return repository


def _malformed_uuid_error() -> asyncpg.DataError:
    # asyncpg encodes $1::uuid client-side and raises DataError before sending.
    return asyncpg.DataError(
        "invalid input for query argument $1: 'not-a-uuid' "
        "(invalid UUID 'not-a-uuid': length must be between 32..36 characters, got 10)"
    )


def test_malformed_id_is_not_found_for_lookups_and_writes() -> None:
    async def run() -> None:
        repository = _repository(_malformed_uuid_error())

        assert isinstance((await repository.get_by_id("not-a-uuid")).error, RepositoryNotFoundError)
        assert isinstance((await repository.update("not-a-uuid", {"major": "CS"})).error, RepositoryNotFoundError)
        assert isinstance((await repository.update_status("not-a-uuid", "approved")).error, RepositoryNotFoundError)
        assert isinstance((await repository.delete("not-a-uuid")).error, RepositoryNotFoundError)

    asyncio.run(run())


def test_server_side_invalid_text_is_not_found() -> None:
    async def run() -> None:
        repository = _repository(pg_exc.InvalidTextRepresentationError("invalid input syntax for type uuid"))
        assert isinstance((await repository.get_by_id("not-a-uuid")).error, RepositoryNotFoundError)

    asyncio.run(run())


def test_unique_violation_is_conflict() -> None:
    async def run() -> None:
        draft = validate_submission(build_document()).draft
        assert draft is not None
        repository = _repository(pg_exc.UniqueViolationError("duplicate key value violates unique constraint"))

        result = await repository.create(draft)

        assert isinstance(result.error, RepositoryConflictError)

    asyncio.run(run())


def test_other_failures_keep_their_category() -> None:
    async def run() -> None:
        storage = _repository(pg_exc.CheckViolationError("new row violates check constraint"))
        assert isinstance((await storage.get_by_id("11111111-1111-1111-1111-111111111111")).error, RepositoryStorageError)

        offline = _repository(ConnectionRefusedError("connection refused"))
        assert isinstance(
            (await offline.get_by_id("11111111-1111-1111-1111-111111111111")).error,
            RepositoryUnavailableError,
        )

    asyncio.run(run())
