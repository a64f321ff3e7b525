from __future__ import annotations

import asyncio
import json

import httpx

from conftest import build_record
from showcase_api.services.dispatch import DispatchResult, GitHubDispatcher


def _dispatcher(client: httpx.AsyncClient | None = None, token: str | None = "ghp-test") -> GitHubDispatcher:
    return GitHubDispatcher(token=token, owner="diabeatz96", repo="student-showcase", client=client)


def test_dispatch_posts_repository_dispatch_event() -> None:
    captured: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status_code=204, request=request)

    async def run() -> DispatchResult:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await _dispatcher(client).dispatch(build_record())

    result = asyncio.run(run())

    assert result == DispatchResult(ok=True, status_code=204)
    request = captured[0]
    assert str(request.url) == "https://api.github.com/repos/diabeatz96/student-showcase/dispatches"
    assert request.headers["Authorization"] == "Bearer ghp-test"
    assert request.headers["Accept"] == "application/vnd.github+json"
    assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"

    body = json.loads(request.content)
    assert body["event_type"] == "create-student-pr"
    payload = body["client_payload"]
    assert payload["submission_id"] == "11111111-1111-1111-1111-111111111111"
    assert payload["student_name"] == "Ana Lee"
    assert payload["student_email"] == "ana@uni.edu"
    submission_data = json.loads(payload["submission_data"])
    assert submission_data["firstName"] == "Ana"
    assert submission_data["projects"][0]["canEmbed"] is True


def test_dispatch_without_token_skips_network() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async def run() -> DispatchResult:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await _dispatcher(client, token=None).dispatch(build_record())

    result = asyncio.run(run())
    assert result == DispatchResult(ok=False, error="GitHub token not configured")


def test_dispatch_reports_github_error_status() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=422, json={"message": "Unprocessable"}, request=request)

    async def run() -> DispatchResult:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await _dispatcher(client).dispatch(build_record())

    result = asyncio.run(run())
    assert not result.ok
    assert result.error == "GitHub API error: 422"
    assert result.status_code == 422


def test_dispatch_reports_transport_failure() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def run() -> DispatchResult:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await _dispatcher(client).dispatch(build_record())

    result = asyncio.run(run())
    assert result == DispatchResult(ok=False, error="Failed to reach GitHub dispatch endpoint")
