"""
Test fixtures for the recording cleaning service.

The processor is replaced by a scripted fake so tests control exactly what
the external API reports; recordings live in the in-memory store.
"""

from typing import List, Optional

import pytest

from audio_cleaner.processor.base import (
    JobProcessor,
    ProcessorJobStatus,
    ProcessorState,
    TransportError,
)
from audio_cleaner.recordings.coordinator import CleaningCoordinator
from audio_cleaner.recordings.models import Recording, RecordingStatus
from audio_cleaner.store.memory_store import InMemoryRecordingStore

OWNER = "actor-1"
STRANGER = "actor-2"


class FakeProcessor(JobProcessor):
    """Processor double. Queue up statuses (or exceptions) for get_job_status."""

    def __init__(self, job_handle: str = "job-123"):
        self.job_handle = job_handle
        self.create_error: Optional[Exception] = None
        self.statuses: List = []
        self.created: List[tuple] = []
        self.status_calls: List[str] = []

    def report(self, state: ProcessorState, output_uri: Optional[str] = None, reason: Optional[str] = None):
        self.statuses.append(ProcessorJobStatus(state=state, output_uri=output_uri, reason=reason))

    def fail_next_status(self, message: str = "timed out"):
        self.statuses.append(TransportError(message))

    async def create_job(self, source_uri: str, callback_uri: Optional[str] = None) -> str:
        self.created.append((source_uri, callback_uri))
        if self.create_error is not None:
            raise self.create_error
        return self.job_handle

    async def get_job_status(self, job_handle: str) -> ProcessorJobStatus:
        self.status_calls.append(job_handle)
        if not self.statuses:
            return ProcessorJobStatus(state=ProcessorState.IN_PROGRESS)
        # The last scripted status repeats once the queue is drained.
        item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def store():
    return InMemoryRecordingStore()


@pytest.fixture
def processor():
    return FakeProcessor()


@pytest.fixture
def coordinator(store, processor):
    return CleaningCoordinator(store, processor)


def make_recording(
    recording_id: str,
    status: RecordingStatus = RecordingStatus.RAW,
    job_handle: Optional[str] = None,
    cleaned: Optional[str] = None,
) -> Recording:
    return Recording(
        id=recording_id,
        owner_id=OWNER,
        raw_audio_location=f"https://storage/recordings/{recording_id}.webm",
        status=status,
        external_job_handle=job_handle,
        cleaned_audio_location=cleaned,
    )
