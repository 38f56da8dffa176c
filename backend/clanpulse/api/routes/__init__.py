from fastapi import APIRouter

from clanpulse.api.routes import analytics, clans, exports, health


api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(analytics.router)
api_router.include_router(clans.router)
api_router.include_router(exports.router)
