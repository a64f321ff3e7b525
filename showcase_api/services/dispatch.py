from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx
from opentelemetry import trace

from showcase_api.core.telemetry import annotate_submission
from showcase_api.schemas.submissions import SubmissionOut

if TYPE_CHECKING:
    from showcase_api.core.config import Settings
    from showcase_api.services.records import SubmissionRecord

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_EVENT_TYPE = "create-student-pr"
GITHUB_API_VERSION = "2022-11-28"


@dataclass(slots=True)
class DispatchResult:
    ok: bool
    error: str | None = None
    status_code: int | None = None


class GitHubDispatcher:
    """Fires a ``repository_dispatch`` event that asks a workflow to open the PR.

    The PR URL and number are not known here; the workflow reports them later
    through the PATCH endpoint. Failures are returned, never raised or retried.
    """

    def __init__(
        self,
        *,
        token: str | None,
        owner: str,
        repo: str,
        api_url: str = "https://api.github.com",
        timeout_seconds: float = 10.0,
        event_type: str = DEFAULT_EVENT_TYPE,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.token = token
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.event_type = event_type
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> GitHubDispatcher:
        return cls(
            token=settings.github_token,
            owner=settings.github_repo_owner,
            repo=settings.github_repo_name,
            api_url=settings.github_api_url,
            timeout_seconds=settings.dispatch_timeout_seconds,
            event_type=settings.github_dispatch_event_type,
        )

    @property
    def dispatch_url(self) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/dispatches"

    def build_payload(self, record: SubmissionRecord) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "client_payload": {
                "submission_id": record.id,
                "student_name": record.display_name,
                "student_email": record.email,
                "submission_data": SubmissionOut.from_record(record).model_dump_json(by_alias=True),
            },
        }

    async def dispatch(self, record: SubmissionRecord) -> DispatchResult:
        if not self.token:
            logger.warning("pull request dispatch skipped submission_id=%s reason=missing_token", record.id)
            return DispatchResult(ok=False, error="GitHub token not configured")

        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        body = json.dumps(self.build_payload(record))

        with tracer.start_as_current_span("submission.dispatch_pull_request") as span:
            annotate_submission(span, record)
            try:
                if self._client is not None:
                    response = await self._client.post(self.dispatch_url, content=body, headers=headers)
                else:
                    async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                        response = await client.post(self.dispatch_url, content=body, headers=headers)
            except httpx.HTTPError as exc:
                logger.error("pull request dispatch failed submission_id=%s error=%s", record.id, exc)
                return DispatchResult(ok=False, error="Failed to reach GitHub dispatch endpoint")

            span.set_attribute("http.status_code", response.status_code)

        if not response.is_success:
            logger.error(
                "pull request dispatch rejected submission_id=%s status=%s body=%s",
                record.id,
                response.status_code,
                response.text[:500],
            )
            return DispatchResult(
                ok=False,
                error=f"GitHub API error: {response.status_code}",
                status_code=response.status_code,
            )

        logger.info("pull request dispatch sent submission_id=%s status=%s", record.id, response.status_code)
        return DispatchResult(ok=True, status_code=response.status_code)
