"""Recording data model for the audio-cleaning lifecycle."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
import uuid


class RecordingStatus(str, Enum):
    RAW = "raw"
    CLEANING = "cleaning"
    CLEANED = "cleaned"
    ERROR = "error"


class Recording(BaseModel):
    """An owned recording and the state of its noise-reduction job.

    `status` is the only field a client needs to tell apart "never cleaned",
    "cleaning", "cleaned" and "failed". `cleaned_audio_location` is set only
    while the recording is cleaned; `external_job_handle` is set once a job
    has been accepted by the processor.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner_id: str
    raw_audio_location: str
    cleaned_audio_location: Optional[str] = None
    external_job_handle: Optional[str] = None
    status: RecordingStatus = RecordingStatus.RAW
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Recording":
        """Build a Recording from an `actor_recordings` table row."""
        return cls(
            id=str(row["id"]),
            owner_id=str(row["actor_id"]),
            raw_audio_location=row["raw_audio_url"],
            cleaned_audio_location=row.get("cleaned_audio_url"),
            external_job_handle=row.get("audo_job_id"),
            status=RecordingStatus(row.get("status") or RecordingStatus.RAW.value),
            created_at=row.get("created_at") or datetime.utcnow(),
            updated_at=row.get("updated_at"),
        )


# Coordinator field names -> table column names
ROW_COLUMNS = {
    "cleaned_audio_location": "cleaned_audio_url",
    "external_job_handle": "audo_job_id",
    "status": "status",
    "updated_at": "updated_at",
}


def to_row_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Translate coordinator field updates into table columns."""
    row = {}
    for key, value in fields.items():
        if key not in ROW_COLUMNS:
            raise ValueError(f"Field '{key}' is not mutable")
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, datetime):
            value = value.isoformat()
        row[ROW_COLUMNS[key]] = value
    return row
