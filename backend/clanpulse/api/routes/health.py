from datetime import datetime, timezone

from fastapi import APIRouter

from clanpulse.core.config import get_settings


router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "gameApiConfigured": bool(settings.coc_api_token.strip()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
