from __future__ import annotations

import os
from typing import Any

import pytest
from fastapi.testclient import TestClient

import showcase_api.core.security as security
from showcase_api.core.auth import parse_admin_emails, parse_bearer_token
from showcase_api.core.config import get_settings
from showcase_api.main import app


@pytest.fixture
def login_client() -> TestClient:
    os.environ["SPS_DATABASE_BACKEND"] = "memory"
    os.environ["SPS_SUPABASE_URL"] = "https://example.supabase.co"
    os.environ["SPS_SUPABASE_ANON_KEY"] = "anon-key"
    os.environ["SPS_ADMIN_EMAILS"] = "Admin@Example.edu, staff@example.edu"
    get_settings.cache_clear()

    with TestClient(app) as client:
        yield client

    for name in ("SPS_DATABASE_BACKEND", "SPS_SUPABASE_URL", "SPS_SUPABASE_ANON_KEY", "SPS_ADMIN_EMAILS"):
        os.environ.pop(name, None)
    get_settings.cache_clear()


def _mock_password_grant(monkeypatch: pytest.MonkeyPatch, *, accept: bool) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    async def _fake_grant(**kwargs: Any) -> dict[str, Any]:
        calls.append(kwargs)
        if not accept:
            raise security.LoginRejectedError("invalid credentials")
        return {"access_token": "session-token", "token_type": "bearer"}

    monkeypatch.setattr(security, "_password_grant", _fake_grant)
    return calls


def test_login_returns_token_for_admin(login_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _mock_password_grant(monkeypatch, accept=True)

    response = login_client.post("/auth/login", json={"email": " ADMIN@example.edu", "password": "secret"})

    assert response.status_code == 200
    assert response.json() == {"token": "session-token", "email": "admin@example.edu"}
    assert calls[0]["email"] == "admin@example.edu"


def test_login_requires_email_and_password(login_client: TestClient) -> None:
    response = login_client.post("/auth/login", json={"email": "admin@example.edu"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Email and password are required"


def test_login_rejects_non_admin_without_calling_supabase(
    login_client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls = _mock_password_grant(monkeypatch, accept=True)

    response = login_client.post("/auth/login", json={"email": "student@uni.edu", "password": "secret"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"
    assert calls == []


def test_login_rejects_bad_password(login_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    _mock_password_grant(monkeypatch, accept=False)

    response = login_client.post("/auth/login", json={"email": "staff@example.edu", "password": "wrong"})

    assert response.status_code == 401


def test_admin_email_and_bearer_parsing() -> None:
    assert parse_admin_emails(" A@x.edu ,, b@y.edu ") == {"a@x.edu", "b@y.edu"}
    assert parse_bearer_token("Bearer abc ") == "abc"
