from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from showcase_api.api.deps import get_moderation_service
from showcase_api.core.auth import AdminPrincipal
from showcase_api.core.security import get_admin_principal
from showcase_api.schemas.submissions import (
    ApproveOut,
    ApproveRequest,
    MessageOut,
    StatsOut,
    SubmissionCreated,
    SubmissionListOut,
    SubmissionOut,
    SubmissionPatchRequest,
    SubmissionUpdatedOut,
)
from showcase_api.services import intake
from showcase_api.services.lifecycle import SubmissionStatus
from showcase_api.services.moderation import (
    ModerationConflictError,
    ModerationService,
    ModerationValidationError,
)
from showcase_api.services.records import ListOptions
from showcase_api.services.repository import (
    RepositoryConflictError,
    RepositoryError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
    SubmissionRepository,
    get_repository,
)
from showcase_api.services.stats import collect_stats

router = APIRouter()


def _repository_http_error(exc: RepositoryError) -> HTTPException:
    if isinstance(exc, RepositoryNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
    if isinstance(exc, RepositoryValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, RepositoryConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, RepositoryUnavailableError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Submission storage failed")


@router.post(
    "",
    response_model=SubmissionCreated,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Validation failed"}, 409: {"description": "Pending submission exists"}},
)
async def create_submission(
    document: Any = Body(...),
    repository: SubmissionRepository = Depends(get_repository),
) -> SubmissionCreated | JSONResponse:
    try:
        record = await intake.submit(repository, document)
    except intake.SubmissionRejectedError as exc:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Validation failed", "details": exc.errors},
        )
    except intake.DuplicatePendingSubmissionError as exc:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"error": str(exc), "existingId": exc.existing_id},
        )
    except RepositoryError as exc:
        raise _repository_http_error(exc) from exc

    return SubmissionCreated(message="Submission received successfully", id=record.id)


@router.get("", response_model=SubmissionListOut)
async def list_submissions(
    principal: AdminPrincipal = Depends(get_admin_principal),
    repository: SubmissionRepository = Depends(get_repository),
    submission_status: SubmissionStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=20, ge=1),
    offset: int = Query(default=0, ge=0),
) -> SubmissionListOut:
    result = await repository.list_submissions(
        ListOptions(status=submission_status, limit=limit, offset=offset, order_by="created_at", order_direction="desc")
    )
    if result.error is not None:
        raise _repository_http_error(result.error)

    page = result.unwrap()
    return SubmissionListOut(
        submissions=[SubmissionOut.from_record(record) for record in page.records],
        total=page.total,
        limit=limit,
        offset=offset,
    )


@router.get("/stats", response_model=StatsOut)
async def submission_stats(
    principal: AdminPrincipal = Depends(get_admin_principal),
    repository: SubmissionRepository = Depends(get_repository),
) -> StatsOut:
    try:
        stats = await collect_stats(repository)
    except RepositoryError as exc:
        raise _repository_http_error(exc) from exc
    return StatsOut.from_stats(stats)


@router.get("/{submission_id}", response_model=SubmissionOut)
async def get_submission(
    submission_id: str,
    principal: AdminPrincipal = Depends(get_admin_principal),
    repository: SubmissionRepository = Depends(get_repository),
) -> SubmissionOut:
    result = await repository.get_by_id(submission_id)
    if result.error is not None:
        raise _repository_http_error(result.error)
    return SubmissionOut.from_record(result.unwrap())


@router.patch("/{submission_id}", response_model=SubmissionUpdatedOut)
async def patch_submission(
    submission_id: str,
    payload: SubmissionPatchRequest,
    principal: AdminPrincipal = Depends(get_admin_principal),
    moderation: ModerationService = Depends(get_moderation_service),
) -> SubmissionUpdatedOut:
    reviewed_by = payload.reviewed_by or principal.email
    reports_pull_request = payload.pr_url is not None or payload.pr_number is not None

    try:
        if payload.status == SubmissionStatus.REJECTED:
            record = await moderation.reject(
                submission_id,
                review_notes=payload.review_notes,
                reviewed_by=reviewed_by,
            )
        elif reports_pull_request:
            record = await moderation.record_pull_request(
                submission_id,
                pr_url=payload.pr_url,
                pr_number=payload.pr_number,
                status=payload.status,
            )
        elif payload.status is not None:
            record = await moderation.change_status(
                submission_id,
                payload.status,
                review_notes=payload.review_notes,
                reviewed_by=reviewed_by,
            )
        else:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nothing to update")
    except ModerationValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ModerationConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except RepositoryError as exc:
        raise _repository_http_error(exc) from exc

    return SubmissionUpdatedOut(message="Submission updated", submission=SubmissionOut.from_record(record))


@router.delete("/{submission_id}", response_model=MessageOut)
async def delete_submission(
    submission_id: str,
    principal: AdminPrincipal = Depends(get_admin_principal),
    moderation: ModerationService = Depends(get_moderation_service),
) -> MessageOut:
    try:
        await moderation.delete(submission_id)
    except RepositoryError as exc:
        raise _repository_http_error(exc) from exc
    return MessageOut(message="Submission deleted")


@router.post("/{submission_id}/approve", response_model=ApproveOut)
async def approve_submission(
    submission_id: str,
    payload: ApproveRequest | None = Body(default=None),
    principal: AdminPrincipal = Depends(get_admin_principal),
    moderation: ModerationService = Depends(get_moderation_service),
) -> ApproveOut:
    payload = payload or ApproveRequest()
    try:
        outcome = await moderation.approve(
            submission_id,
            review_notes=payload.review_notes,
            reviewed_by=payload.reviewed_by or principal.email,
        )
    except ModerationConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except RepositoryError as exc:
        raise _repository_http_error(exc) from exc

    if outcome.dispatch.ok:
        message = (
            "PR creation re-triggered for approved submission"
            if outcome.retried
            else "Submission approved and PR creation triggered"
        )
    else:
        message = (
            "PR creation failed again. You can retry."
            if outcome.retried
            else "Submission approved, but PR creation failed. You can retry."
        )

    return ApproveOut(
        message=message,
        submission=SubmissionOut.from_record(outcome.record),
        pr_triggered=outcome.dispatch.ok,
        retried=outcome.retried,
        pr_url=outcome.record.pr_url,
        pr_number=outcome.record.pr_number,
        error=outcome.dispatch.error,
    )
