"""External noise-reduction processor interface."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ProcessorState(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    IN_PROGRESS = "in_progress"
    QUEUED = "queued"


class ProcessorJobStatus(BaseModel):
    state: ProcessorState
    output_uri: Optional[str] = None
    reason: Optional[str] = None


class RemoteError(Exception):
    """The processor rejected a job or could not be reached while creating it."""


class TransportError(Exception):
    """A status query to the processor failed (network, timeout, non-2xx)."""


class JobProcessor(ABC):
    """Abstract interface for a third-party processor with a tri-state outcome."""

    @abstractmethod
    async def create_job(self, source_uri: str, callback_uri: Optional[str] = None) -> str:
        """Submit source_uri for processing. Returns the processor's job handle."""
        ...

    @abstractmethod
    async def get_job_status(self, job_handle: str) -> ProcessorJobStatus:
        ...

    async def aclose(self) -> None:
        """Release any connections held by the processor client."""
        return None
