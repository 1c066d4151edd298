"""Recording cleaning API: register recordings, start cleaning and poll job status."""

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Optional

from audio_cleaner.auth.supabase_auth import get_caller_id
from audio_cleaner.config import settings
from audio_cleaner.recordings.coordinator import PollResult
from audio_cleaner.recordings.models import Recording

router = APIRouter()

# These will be set by main.py during lifespan
_coordinator = None
_poller = None


def set_coordinator(coordinator):
    global _coordinator
    _coordinator = coordinator


def set_poller(poller):
    global _poller
    _poller = poller


def require_coordinator():
    if _coordinator is None:
        raise HTTPException(status_code=503, detail="Cleaning coordinator not initialized")
    return _coordinator


class RecordingCreateRequest(BaseModel):
    raw_audio_url: str


class RecordingResponse(BaseModel):
    id: str
    actor_id: str
    raw_audio_url: str
    cleaned_audio_url: Optional[str] = None
    audo_job_id: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_recording(cls, recording: Recording) -> "RecordingResponse":
        return cls(
            id=recording.id,
            actor_id=recording.owner_id,
            raw_audio_url=recording.raw_audio_location,
            cleaned_audio_url=recording.cleaned_audio_location,
            audo_job_id=recording.external_job_handle,
            status=recording.status.value,
            created_at=recording.created_at,
            updated_at=recording.updated_at,
        )


class CleanResponse(BaseModel):
    recording_id: str
    job_id: str
    status: str
    polling: bool
    message: str


class PollResponse(BaseModel):
    recording_id: str
    status: str
    terminal: bool
    cleaned_audio_url: Optional[str] = None

    @classmethod
    def from_result(cls, result: PollResult) -> "PollResponse":
        return cls(
            recording_id=result.recording_id,
            status=result.recording_status.value,
            terminal=result.terminal,
            cleaned_audio_url=result.cleaned_audio_location,
        )


@router.post("/recordings", response_model=RecordingResponse, status_code=201)
async def create_recording(
    request: RecordingCreateRequest, caller_id: str = Depends(get_caller_id)
):
    """Register an uploaded recording in the `raw` state."""
    coordinator = require_coordinator()
    recording = await coordinator.store.create_recording(caller_id, request.raw_audio_url)
    return RecordingResponse.from_recording(recording)


@router.get("/recordings/{recording_id}", response_model=RecordingResponse)
async def get_recording(recording_id: str, caller_id: str = Depends(get_caller_id)):
    coordinator = require_coordinator()
    recording = await coordinator.get_owned_recording(recording_id, caller_id)
    return RecordingResponse.from_recording(recording)


@router.post("/recordings/{recording_id}/clean", response_model=CleanResponse, status_code=202)
async def clean_recording(recording_id: str, caller_id: str = Depends(get_caller_id)):
    """Submit a recording for noise reduction.

    When auto-polling is enabled the service follows the job itself; the
    client can still call /poll or just re-read the recording.
    """
    coordinator = require_coordinator()
    result = await coordinator.submit_cleaning_job(recording_id, caller_id)

    polling = False
    if _poller is not None and settings.auto_poll:
        _poller.start(recording_id, caller_id)
        polling = True

    return CleanResponse(
        recording_id=recording_id,
        job_id=result.external_job_handle,
        status="cleaning",
        polling=polling,
        message="Cleaning started. Poll POST /api/v1/recordings/{id}/poll for status.",
    )


@router.post("/recordings/{recording_id}/poll", response_model=PollResponse)
async def poll_recording(recording_id: str, caller_id: str = Depends(get_caller_id)):
    coordinator = require_coordinator()
    result = await coordinator.poll_job_status(recording_id, caller_id)
    return PollResponse.from_result(result)
