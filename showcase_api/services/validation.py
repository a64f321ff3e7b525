from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from showcase_api.schemas.submissions import SubmissionIn
from showcase_api.services.records import SubmissionDraft

ROOT_ERROR_KEY = "__root__"


@dataclass(slots=True)
class SubmissionValidation:
    draft: SubmissionDraft | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.draft is not None and not self.errors


def validate_submission(document: Any) -> SubmissionValidation:
    """Validate an intake document and normalize it into a draft.

    Unknown keys (including ``id`` and ``status``) are ignored. Errors are keyed
    by dotted wire path, e.g. ``projects.0.description``.
    """
    if not isinstance(document, dict):
        return SubmissionValidation(errors={ROOT_ERROR_KEY: ["submission must be a JSON object"]})

    try:
        parsed = SubmissionIn.model_validate(document)
    except ValidationError as exc:
        return SubmissionValidation(errors=field_errors(exc.errors()))
    return SubmissionValidation(draft=parsed.to_draft())


def field_errors(errors: Sequence[Any], *, skip_prefix: Sequence[str] = ()) -> dict[str, list[str]]:
    details: dict[str, list[str]] = {}
    for error in errors:
        location = [str(part) for part in error.get("loc", ())]
        if skip_prefix and location[: len(skip_prefix)] == list(skip_prefix):
            location = location[len(skip_prefix) :]
        key = ".".join(location) or ROOT_ERROR_KEY
        details.setdefault(key, []).append(str(error.get("msg", "invalid value")))
    return details
