"""Health check endpoint."""

from fastapi import APIRouter
import platform
import sys

from audio_cleaner.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Service health and runtime info."""
    return {
        "status": "healthy",
        "store_backend": settings.store_backend,
        "processor": settings.processor_base_url,
        "push_notifications": bool(settings.webhook_url),
        "python_version": sys.version,
        "platform": platform.platform(),
    }
