"""Background polling of cleaning jobs.

One asyncio task per recording calls `poll_job_status` on a fixed interval
until the recording reaches a terminal status. Cancelling a loop only stops
future ticks; the processor job and the stored recording are unaffected.
"""

import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

from audio_cleaner.config import settings
from audio_cleaner.logger import get_logger
from audio_cleaner.recordings.coordinator import CleaningCoordinator, PollResult
from audio_cleaner.recordings.errors import PermissionDenied, PollFailed, RecordingNotFound
from audio_cleaner.recordings.models import RecordingStatus

logger = get_logger(__name__)

TerminalCallback = Callable[[PollResult], Awaitable[None]]


class CleaningPoller:
    """Keeps at most one polling loop alive per recording."""

    def __init__(
        self,
        coordinator: CleaningCoordinator,
        interval: Optional[float] = None,
        max_consecutive_failures: Optional[int] = None,
        on_terminal: Optional[TerminalCallback] = None,
    ):
        self._coordinator = coordinator
        self._interval = interval if interval is not None else settings.poll_interval_seconds
        self._max_failures = (
            max_consecutive_failures
            if max_consecutive_failures is not None
            else settings.max_consecutive_poll_failures
        )
        self._on_terminal = on_terminal
        self._tasks: Dict[str, asyncio.Task] = {}

    def start(self, recording_id: str, caller_id: str) -> bool:
        """Begin polling a recording. Returns False if a loop is already running."""
        if self.is_active(recording_id):
            return False
        task = asyncio.create_task(self._loop(recording_id, caller_id))
        self._tasks[recording_id] = task
        task.add_done_callback(lambda t, rid=recording_id: self._forget(rid, t))
        return True

    def is_active(self, recording_id: str) -> bool:
        task = self._tasks.get(recording_id)
        return task is not None and not task.done()

    def active_ids(self) -> List[str]:
        return [rid for rid in self._tasks if self.is_active(rid)]

    async def cancel(self, recording_id: str) -> None:
        task = self._tasks.pop(recording_id, None)
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.wait([task])

    async def shutdown(self) -> None:
        for recording_id in list(self._tasks):
            await self.cancel(recording_id)

    async def wait(self, recording_id: str) -> None:
        """Wait until the loop for a recording has finished."""
        task = self._tasks.get(recording_id)
        if task is not None:
            await asyncio.shield(task)

    async def resume_in_flight(self) -> int:
        """Start loops for every recording left in `cleaning`. Returns how many started."""
        recordings = await self._coordinator.store.list_by_status(RecordingStatus.CLEANING)
        started = 0
        for recording in recordings:
            if self.start(recording.id, recording.owner_id):
                started += 1
        if started:
            logger.info(f"Resumed polling for {started} in-flight recording(s)")
        return started

    def _forget(self, recording_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(recording_id) is task:
            del self._tasks[recording_id]
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                f"Polling loop for recording {recording_id} crashed",
                exc_info=task.exception(),
            )

    async def _loop(self, recording_id: str, caller_id: str) -> None:
        failures = 0
        while True:
            try:
                result = await self._coordinator.poll_job_status(recording_id, caller_id)
            except (RecordingNotFound, PermissionDenied) as e:
                logger.error(f"Stopped polling recording {recording_id}: {e}")
                return
            except PollFailed:
                failures = self._record_failure(recording_id, failures)
            except Exception:
                # Store or network trouble is retried like a failed status check.
                logger.exception(f"Unexpected error polling recording {recording_id}")
                failures = self._record_failure(recording_id, failures)
            else:
                failures = 0
                if result.terminal:
                    logger.info(
                        f"Recording {recording_id} finished cleaning with status "
                        f"{result.recording_status.value}"
                    )
                    if self._on_terminal is not None:
                        await self._on_terminal(result)
                    return

            await asyncio.sleep(self._interval)

    def _record_failure(self, recording_id: str, failures: int) -> int:
        failures += 1
        if failures == self._max_failures:
            logger.warning(
                f"Recording {recording_id}: {failures} consecutive status checks "
                f"failed; still cleaning, will keep polling"
            )
        return failures
