"""Recording store interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from audio_cleaner.recordings.models import Recording, RecordingStatus


class RecordingStore(ABC):
    """Abstract interface for the shared recording table (memory or Supabase)."""

    @abstractmethod
    async def get_recording(self, recording_id: str) -> Recording:
        """Fetch a recording. Raises RecordingNotFound."""
        ...

    @abstractmethod
    async def compare_and_set_status(
        self,
        recording_id: str,
        expected_status: RecordingStatus,
        new_status: RecordingStatus,
        extra_fields: Optional[Dict[str, Any]] = None,
        expected_job_handle: Optional[str] = None,
    ) -> bool:
        """Atomically move a recording from expected_status to new_status.

        The write applies only if the stored status (and the stored job
        handle, when expected_job_handle is given) still match. Returns
        whether the write was applied.
        """
        ...

    @abstractmethod
    async def find_by_job_handle(self, job_handle: str) -> Optional[Recording]:
        ...

    @abstractmethod
    async def list_by_status(self, status: RecordingStatus) -> List[Recording]:
        ...

    @abstractmethod
    async def create_recording(self, owner_id: str, raw_audio_location: str) -> Recording:
        """Register a new recording in the `raw` state."""
        ...
