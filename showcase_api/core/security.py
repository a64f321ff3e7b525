from typing import Any

import httpx
from fastapi import Depends, Header, HTTPException, status

from showcase_api.core.auth import AdminPrincipal, parse_bearer_token
from showcase_api.core.config import Settings, get_settings


class LoginRejectedError(Exception):
    """Raised when Supabase refuses the email/password grant."""


def _auth_unavailable(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


def _supabase_endpoint(settings: Settings) -> tuple[str, str]:
    if not settings.supabase_url or not settings.supabase_anon_key:
        raise _auth_unavailable("Supabase auth is not configured")
    return settings.supabase_url.rstrip("/"), settings.supabase_anon_key


async def get_admin_principal(
    settings: Settings = Depends(get_settings),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> AdminPrincipal:
    """Resolve the bearer token to a Supabase user whose email is on the admin list."""
    token = parse_bearer_token(authorization)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="admin auth requires bearer token")

    supabase_url, anon_key = _supabase_endpoint(settings)
    user = await _fetch_supabase_user(
        supabase_url=supabase_url,
        supabase_anon_key=anon_key,
        token=token,
        timeout_seconds=settings.auth_timeout_seconds,
    )

    user_id = user.get("id")
    email = user.get("email")
    if not isinstance(user_id, str) or not user_id or not isinstance(email, str):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid bearer token")

    normalized_email = email.strip().lower()
    if normalized_email not in settings.admin_email_set:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="user is not an admin")
    return AdminPrincipal(user_id=user_id, email=normalized_email)


async def issue_admin_token(*, settings: Settings, email: str, password: str) -> str:
    """Exchange admin credentials for a Supabase access token.

    Non-admin emails are refused before Supabase is contacted.
    """
    normalized_email = email.strip().lower()
    if normalized_email not in settings.admin_email_set:
        raise LoginRejectedError("email is not an admin")

    supabase_url, anon_key = _supabase_endpoint(settings)
    session = await _password_grant(
        supabase_url=supabase_url,
        supabase_anon_key=anon_key,
        email=normalized_email,
        password=password,
        timeout_seconds=settings.auth_timeout_seconds,
    )
    access_token = session.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        raise LoginRejectedError("Supabase returned no access token")
    return access_token


async def _fetch_supabase_user(
    *,
    supabase_url: str,
    supabase_anon_key: str,
    token: str,
    timeout_seconds: float,
) -> dict[str, Any]:
    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            response = await client.get(
                f"{supabase_url}/auth/v1/user",
                headers={"Authorization": f"Bearer {token}", "apikey": supabase_anon_key},
            )
    except httpx.HTTPError as exc:  # pragma: no cover - network dependent
        raise _auth_unavailable("Supabase auth verification unavailable") from exc

    if response.status_code in {401, 403}:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid bearer token")
    if response.status_code != 200:
        raise _auth_unavailable("Supabase auth verification failed")
    return response.json()


async def _password_grant(
    *,
    supabase_url: str,
    supabase_anon_key: str,
    email: str,
    password: str,
    timeout_seconds: float,
) -> dict[str, Any]:
    try:
        async with httpx.AsyncClient(timeout=timeout_seconds) as client:
            response = await client.post(
                f"{supabase_url}/auth/v1/token",
                params={"grant_type": "password"},
                json={"email": email, "password": password},
                headers={"apikey": supabase_anon_key},
            )
    except httpx.HTTPError as exc:  # pragma: no cover - network dependent
        raise _auth_unavailable("Supabase login unavailable") from exc

    # GoTrue answers bad credentials with 400 invalid_grant.
    if response.status_code in {400, 401, 403}:
        raise LoginRejectedError("invalid credentials")
    if response.status_code != 200:
        raise _auth_unavailable("Supabase login failed")
    return response.json()
