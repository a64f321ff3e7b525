from fastapi import APIRouter, Depends

from showcase_api.core.config import Settings, get_settings

router = APIRouter()


@router.get("/")
@router.get("/healthz")
async def healthz(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    # Liveness only; the database is not probed.
    return {"status": "ok", "service": settings.app_name}
