"""Aggregate all v1 API routers."""

from fastapi import APIRouter
from audio_cleaner.api.v1.health import router as health_router
from audio_cleaner.api.v1.recordings import router as recordings_router
from audio_cleaner.api.v1.webhooks import router as webhooks_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(recordings_router, tags=["recordings"])
v1_router.include_router(webhooks_router, tags=["webhooks"])
