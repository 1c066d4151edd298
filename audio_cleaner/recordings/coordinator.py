"""Cleaning job coordinator.

Drives a recording through raw -> cleaning -> cleaned | error against an
external processor. The coordinator holds no state between calls: every
transition is a single compare-and-set on the recording's status, so any
number of API workers can call it concurrently.

    raw ------ submit ------> cleaning --- poll: succeeded ---> cleaned
     ^                         |                                  |
     |                         +-- poll: failed / submit error -> error
     +--- cleaned and error both accept a new submission ---------+
"""

from typing import Optional

from pydantic import BaseModel

from audio_cleaner.logger import get_logger
from audio_cleaner.processor.base import (
    JobProcessor,
    ProcessorJobStatus,
    ProcessorState,
    RemoteError,
    TransportError,
)
from audio_cleaner.recordings.errors import (
    AlreadyInProgress,
    InvalidNotification,
    JobNotRecorded,
    PermissionDenied,
    PollFailed,
    RemoteSubmissionFailed,
)
from audio_cleaner.recordings.models import Recording, RecordingStatus
from audio_cleaner.store.base import RecordingStore

logger = get_logger(__name__)


class SubmitResult(BaseModel):
    """Returned only once the job handle is stored on the recording.

    If the recording changes before the handle can be stored,
    submit_cleaning_job raises JobNotRecorded instead and the processor job
    is left orphaned.
    """
    recording_id: str
    external_job_handle: str


class PollResult(BaseModel):
    recording_id: str
    recording_status: RecordingStatus
    terminal: bool
    cleaned_audio_location: Optional[str] = None


class CleaningCoordinator:
    """Submits cleaning jobs and reconciles their results onto recordings."""

    def __init__(
        self,
        store: RecordingStore,
        processor: JobProcessor,
        callback_uri: Optional[str] = None,
    ):
        self.store = store
        self.processor = processor
        self.callback_uri = callback_uri

    async def get_owned_recording(self, recording_id: str, caller_id: str) -> Recording:
        recording = await self.store.get_recording(recording_id)
        if recording.owner_id != caller_id:
            raise PermissionDenied(
                f"Caller does not own recording {recording_id}", recording_id
            )
        return recording

    async def submit_cleaning_job(self, recording_id: str, caller_id: str) -> SubmitResult:
        """Start a noise-reduction job for a recording the caller owns.

        Raises RecordingNotFound, PermissionDenied, AlreadyInProgress,
        RemoteSubmissionFailed or JobNotRecorded. If no job handle comes back
        for any reason the recording is left in `error`, so calling this
        again is the retry.
        """
        recording = await self.get_owned_recording(recording_id, caller_id)

        # Claim the recording. Losing the race means someone else moved it
        # first; re-read and try again from whatever state it is in now.
        while True:
            if recording.status == RecordingStatus.CLEANING:
                raise AlreadyInProgress(
                    f"Recording {recording_id} is already being cleaned", recording_id
                )
            claimed = await self.store.compare_and_set_status(
                recording_id,
                recording.status,
                RecordingStatus.CLEANING,
                {"cleaned_audio_location": None, "external_job_handle": None},
            )
            if claimed:
                break
            recording = await self.store.get_recording(recording_id)

        try:
            job_handle = await self.processor.create_job(
                recording.raw_audio_location, self.callback_uri
            )
        except BaseException as e:
            # Leaving without a handle must release the claim, or the
            # recording stays `cleaning` with nothing to poll.
            await self.store.compare_and_set_status(
                recording_id, RecordingStatus.CLEANING, RecordingStatus.ERROR
            )
            if not isinstance(e, Exception):
                logger.warning(f"Job submission for recording {recording_id} interrupted")
                raise
            logger.error(f"Job submission failed for recording {recording_id}: {e}")
            if isinstance(e, RemoteError):
                raise RemoteSubmissionFailed(str(e), recording_id) from e
            raise RemoteSubmissionFailed(
                f"Unexpected processor error: {type(e).__name__}: {e}", recording_id
            ) from e

        stored = await self.store.compare_and_set_status(
            recording_id,
            RecordingStatus.CLEANING,
            RecordingStatus.CLEANING,
            {"external_job_handle": job_handle},
        )
        if not stored:
            # Only the owner's deletion can move a claimed recording here.
            logger.error(
                f"Recording {recording_id} changed before job {job_handle} could be "
                f"recorded; the processor job is orphaned"
            )
            raise JobNotRecorded(
                f"Recording {recording_id} changed before job {job_handle} could be recorded",
                recording_id,
            )

        logger.info(f"Recording {recording_id} submitted for cleaning as job {job_handle}")
        return SubmitResult(recording_id=recording_id, external_job_handle=job_handle)

    async def poll_job_status(self, recording_id: str, caller_id: str) -> PollResult:
        """Ask the processor about the recording's job and record the outcome.

        Once the recording is no longer cleaning this is a read with no
        processor call. Raises PollFailed on transport errors without
        touching the recording.
        """
        recording = await self.get_owned_recording(recording_id, caller_id)

        if recording.status != RecordingStatus.CLEANING:
            return _result(recording)

        if not recording.external_job_handle:
            # Submission claimed the row but has not stored the handle yet.
            return _result(recording)

        try:
            job_status = await self.processor.get_job_status(recording.external_job_handle)
        except TransportError as e:
            logger.warning(
                f"Status check failed for recording {recording_id} "
                f"(job {recording.external_job_handle}): {e}"
            )
            raise PollFailed(str(e), recording_id) from e

        recording = await self._reconcile(recording, job_status)
        return _result(recording)

    async def handle_job_notification(
        self,
        job_handle: str,
        state: str,
        output_uri: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Optional[PollResult]:
        """Apply a pushed job result. Returns None when no recording is waiting on it."""
        try:
            processor_state = ProcessorState(state)
        except ValueError:
            processor_state = ProcessorState.IN_PROGRESS

        if processor_state == ProcessorState.SUCCEEDED and not output_uri:
            raise InvalidNotification(f"Job {job_handle} succeeded but has no output location")

        recording = await self.store.find_by_job_handle(job_handle)
        if recording is None:
            logger.info(f"Ignoring notification for unknown job {job_handle}")
            return None
        if recording.status != RecordingStatus.CLEANING:
            return _result(recording)

        job_status = ProcessorJobStatus(state=processor_state, output_uri=output_uri, reason=reason)
        recording = await self._reconcile(recording, job_status)
        return _result(recording)

    async def _reconcile(self, recording: Recording, job_status: ProcessorJobStatus) -> Recording:
        """Map a processor outcome onto a cleaning recording.

        Writes are guarded on `cleaning` and the job handle the outcome is
        for, so a late result from a replaced job is dropped.
        """
        job_handle = recording.external_job_handle

        if job_status.state == ProcessorState.SUCCEEDED and job_status.output_uri:
            new_status = RecordingStatus.CLEANED
            fields = {"cleaned_audio_location": job_status.output_uri}
            logger.info(f"Job {job_handle} succeeded. URL: {job_status.output_uri}")
        elif job_status.state in (ProcessorState.SUCCEEDED, ProcessorState.FAILED):
            new_status = RecordingStatus.ERROR
            fields = {}
            reason = job_status.reason or "no output location"
            logger.error(f"Job {job_handle} failed. Reason: {reason}")
        else:
            return recording

        applied = await self.store.compare_and_set_status(
            recording.id,
            RecordingStatus.CLEANING,
            new_status,
            fields,
            expected_job_handle=job_handle,
        )
        if not applied:
            logger.info(f"Result for job {job_handle} is stale; recording {recording.id} moved on")
        return await self.store.get_recording(recording.id)


def _result(recording: Recording) -> PollResult:
    return PollResult(
        recording_id=recording.id,
        recording_status=recording.status,
        terminal=recording.status != RecordingStatus.CLEANING,
        cleaned_audio_location=recording.cleaned_audio_location,
    )
