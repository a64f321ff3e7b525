from __future__ import annotations

from typing import Any

from conftest import build_document
from showcase_api.services.validation import ROOT_ERROR_KEY, field_errors, validate_submission


def test_valid_document_normalizes_into_draft(submission_document: dict[str, Any]) -> None:
    submission_document["email"] = "Ana@Uni.EDU"
    submission_document["website"] = "   "
    submission_document["skills"] = [" Python ", "", "React"]

    validation = validate_submission(submission_document)

    assert validation.ok
    draft = validation.draft
    assert draft is not None
    assert draft.email == "ana@uni.edu"
    assert draft.contact.website is None
    assert draft.contact.github == "https://github.com/analee"
    assert draft.skills == ["Python", "React"]
    assert draft.projects[0].featured is False
    assert draft.projects[0].can_embed is True
    assert draft.projects[0].repo_url == "https://github.com/analee/planner"


def test_client_supplied_id_and_status_are_ignored() -> None:
    validation = validate_submission(build_document(id="abc", status="approved"))
    assert validation.ok
    assert not hasattr(validation.draft, "status")


def test_short_bio_is_reported_by_field() -> None:
    validation = validate_submission(build_document(bio="Too short"))

    assert not validation.ok
    assert list(validation.errors) == ["bio"]


def test_project_errors_use_dotted_paths() -> None:
    document = build_document()
    document["projects"][0]["description"] = "short"
    document["projects"][0]["demoUrl"] = "not a url"

    validation = validate_submission(document)

    assert "projects.0.description" in validation.errors
    assert validation.errors["projects.0.demoUrl"] == ["Value error, must be a valid URL"]


def test_project_count_is_bounded() -> None:
    project = build_document()["projects"][0]

    assert "projects" in validate_submission(build_document(projects=[])).errors
    assert "projects" in validate_submission(build_document(projects=[project] * 7)).errors
    assert validate_submission(build_document(projects=[project] * 6)).ok


def test_graduation_year_and_email_are_checked() -> None:
    validation = validate_submission(build_document(graduationYear=2019, email="not-an-email"))
    assert set(validation.errors) == {"graduationYear", "email"}


def test_missing_required_fields_and_empty_skills() -> None:
    document = build_document(skills=[" "])
    del document["lastName"]

    validation = validate_submission(document)

    assert set(validation.errors) == {"lastName", "skills"}


def test_non_object_document_is_rejected() -> None:
    validation = validate_submission(["not", "an", "object"])
    assert validation.errors == {ROOT_ERROR_KEY: ["submission must be a JSON object"]}


def test_field_errors_strips_location_prefix() -> None:
    errors = [
        {"loc": ("body", "email"), "msg": "value is not a valid email address"},
        {"loc": ("body",), "msg": "Field required"},
    ]
    assert field_errors(errors, skip_prefix=("body",)) == {
        "email": ["value is not a valid email address"],
        ROOT_ERROR_KEY: ["Field required"],
    }
