from __future__ import annotations

from fastapi import APIRouter

from src.api.coach import router as coach_router
from src.api.health import router as health_router
from src.api.scorecard import router as scorecard_router


api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(scorecard_router)
api_router.include_router(coach_router)
