from fastapi import Depends, Request

from showcase_api.services.moderation import ModerationService, PullRequestDispatcher
from showcase_api.services.repository import SubmissionRepository, get_repository


def get_dispatcher(request: Request) -> PullRequestDispatcher:
    return request.app.state.dispatcher


def get_moderation_service(
    repository: SubmissionRepository = Depends(get_repository),
    dispatcher: PullRequestDispatcher = Depends(get_dispatcher),
) -> ModerationService:
    return ModerationService(repository=repository, dispatcher=dispatcher)
