"""Errors raised by the cleaning coordinator."""

from typing import Optional


class CleaningError(Exception):
    """Base class for recording cleaning failures."""

    code = "cleaning_error"

    def __init__(self, message: str, recording_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.recording_id = recording_id


class RecordingNotFound(CleaningError):
    code = "not_found"


class PermissionDenied(CleaningError):
    code = "permission_denied"


class AlreadyInProgress(CleaningError):
    """A cleaning job is already running for this recording."""

    code = "already_in_progress"


class RemoteSubmissionFailed(CleaningError):
    """The processor rejected the job or could not be reached.

    The recording has been moved to `error`; submitting again retries.
    """

    code = "remote_submission_failed"


class PollFailed(CleaningError):
    """Transient failure while asking the processor for job status.

    The recording is left untouched so the next poll can retry.
    """

    code = "poll_failed"


class InvalidNotification(CleaningError):
    code = "invalid_notification"


class JobNotRecorded(CleaningError):
    """The processor accepted a job but the recording changed before its handle was stored."""

    code = "job_not_recorded"
