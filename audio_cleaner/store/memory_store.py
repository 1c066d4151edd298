"""In-process recording store for local development and tests.

Every mutation goes through a single asyncio.Lock, which makes the
compare-and-set as atomic as a conditional UPDATE in the database.
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

from audio_cleaner.recordings.errors import RecordingNotFound
from audio_cleaner.recordings.models import ROW_COLUMNS, Recording, RecordingStatus
from audio_cleaner.store.base import RecordingStore


class InMemoryRecordingStore(RecordingStore):
    """Dict-backed store. Returns copies so callers never mutate stored rows."""

    def __init__(self):
        self._recordings: Dict[str, Recording] = {}
        self._lock = asyncio.Lock()

    async def get_recording(self, recording_id: str) -> Recording:
        recording = self._recordings.get(recording_id)
        if recording is None:
            raise RecordingNotFound(f"Recording {recording_id} not found", recording_id)
        return recording.model_copy()

    async def compare_and_set_status(
        self,
        recording_id: str,
        expected_status: RecordingStatus,
        new_status: RecordingStatus,
        extra_fields: Optional[Dict[str, Any]] = None,
        expected_job_handle: Optional[str] = None,
    ) -> bool:
        extra_fields = extra_fields or {}
        for key in extra_fields:
            if key not in ROW_COLUMNS:
                raise ValueError(f"Field '{key}' is not mutable")

        async with self._lock:
            current = self._recordings.get(recording_id)
            if current is None or current.status != expected_status:
                return False
            if expected_job_handle is not None and current.external_job_handle != expected_job_handle:
                return False

            self._recordings[recording_id] = current.model_copy(
                update={**extra_fields, "status": new_status, "updated_at": datetime.utcnow()}
            )
            return True

    async def find_by_job_handle(self, job_handle: str) -> Optional[Recording]:
        for recording in self._recordings.values():
            if recording.external_job_handle == job_handle:
                return recording.model_copy()
        return None

    async def list_by_status(self, status: RecordingStatus) -> List[Recording]:
        return [r.model_copy() for r in self._recordings.values() if r.status == status]

    async def create_recording(self, owner_id: str, raw_audio_location: str) -> Recording:
        recording = Recording(owner_id=owner_id, raw_audio_location=raw_audio_location)
        async with self._lock:
            self._recordings[recording.id] = recording
        return recording.model_copy()

    def add(self, recording: Recording) -> None:
        """Seed a recording as-is (any status)."""
        self._recordings[recording.id] = recording.model_copy()
