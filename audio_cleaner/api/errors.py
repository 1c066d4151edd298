"""Map coordinator errors onto HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from audio_cleaner.recordings.errors import (
    AlreadyInProgress,
    CleaningError,
    InvalidNotification,
    JobNotRecorded,
    PermissionDenied,
    PollFailed,
    RecordingNotFound,
    RemoteSubmissionFailed,
)

_STATUS_CODES = {
    RecordingNotFound: 404,
    PermissionDenied: 403,
    AlreadyInProgress: 409,
    RemoteSubmissionFailed: 502,
    PollFailed: 503,
    InvalidNotification: 400,
    JobNotRecorded: 409,
}


def status_code_for(exc: CleaningError) -> int:
    for exc_type, code in _STATUS_CODES.items():
        if isinstance(exc, exc_type):
            return code
    return 500


def add_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CleaningError)
    async def cleaning_error_handler(request: Request, exc: CleaningError):
        return JSONResponse(
            status_code=status_code_for(exc),
            content={"detail": exc.message, "error": exc.code},
        )
