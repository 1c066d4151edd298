"""Inbound job notifications from the noise-reduction processor.

Server-to-server, so no caller auth; when WEBHOOK_SECRET is set the
callback URL must carry it as `?token=...`.
"""

import hmac
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel
from typing import Optional

from audio_cleaner.config import settings
from audio_cleaner.api.v1 import recordings as recordings_api
from audio_cleaner.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


class ProcessorNotification(BaseModel):
    jobId: str
    status: str
    downloadUrl: Optional[str] = None
    reason: Optional[str] = None


@router.post("/webhooks/processor")
async def processor_webhook(
    payload: ProcessorNotification, token: Optional[str] = Query(None)
):
    if settings.webhook_secret and not hmac.compare_digest(
        token or "", settings.webhook_secret
    ):
        raise HTTPException(status_code=401, detail="Invalid webhook token")

    coordinator = recordings_api.require_coordinator()
    logger.info(f"Webhook received for jobId: {payload.jobId}, status: {payload.status}")

    result = await coordinator.handle_job_notification(
        payload.jobId, payload.status, payload.downloadUrl, payload.reason
    )
    if result is None:
        return {"acknowledged": True, "recording_id": None, "status": None}
    return {
        "acknowledged": True,
        "recording_id": result.recording_id,
        "status": result.recording_status.value,
    }
