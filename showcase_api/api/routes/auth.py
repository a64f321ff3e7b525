import logging

from fastapi import APIRouter, Depends, HTTPException, status

from showcase_api.core.config import Settings, get_settings
from showcase_api.core.security import LoginRejectedError, issue_admin_token
from showcase_api.schemas.auth import LoginOut, LoginRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=LoginOut)
async def login(payload: LoginRequest, settings: Settings = Depends(get_settings)) -> LoginOut:
    if not payload.email or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email and password are required")

    try:
        token = await issue_admin_token(settings=settings, email=payload.email, password=payload.password)
    except LoginRejectedError as exc:
        logger.info("admin login rejected reason=%s", exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials") from exc

    return LoginOut(token=token, email=payload.email.strip().lower())
