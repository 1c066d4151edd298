"""Recording store backed by the Supabase `actor_recordings` table.

The supabase client is synchronous, so each query runs in the default
thread executor to keep the event loop free.
"""

import asyncio
from datetime import datetime
from functools import partial
from typing import Any, Dict, List, Optional

from supabase import Client

from audio_cleaner.config import settings
from audio_cleaner.db.supabase_client import get_supabase
from audio_cleaner.recordings.errors import RecordingNotFound
from audio_cleaner.recordings.models import Recording, RecordingStatus, to_row_fields
from audio_cleaner.store.base import RecordingStore

_COLUMNS = "id, actor_id, raw_audio_url, cleaned_audio_url, audo_job_id, status, created_at, updated_at"


class SupabaseRecordingStore(RecordingStore):

    def __init__(self, client: Optional[Client] = None, table: Optional[str] = None):
        self._client = client
        self._table = table or settings.recordings_table

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    async def _run(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args))

    def _select(self):
        return self.client.table(self._table).select(_COLUMNS)

    async def get_recording(self, recording_id: str) -> Recording:
        response = await self._run(
            lambda: self._select().eq("id", recording_id).limit(1).execute()
        )
        if not response.data:
            raise RecordingNotFound(f"Recording {recording_id} not found", recording_id)
        return Recording.from_row(response.data[0])

    async def compare_and_set_status(
        self,
        recording_id: str,
        expected_status: RecordingStatus,
        new_status: RecordingStatus,
        extra_fields: Optional[Dict[str, Any]] = None,
        expected_job_handle: Optional[str] = None,
    ) -> bool:
        update = to_row_fields(
            {**(extra_fields or {}), "status": new_status, "updated_at": datetime.utcnow()}
        )

        def _update():
            query = (
                self.client.table(self._table)
                .update(update)
                .eq("id", recording_id)
                .eq("status", expected_status.value)
            )
            if expected_job_handle is not None:
                query = query.eq("audo_job_id", expected_job_handle)
            return query.execute()

        # A single conditional UPDATE; an empty result means the guard did not match.
        response = await self._run(_update)
        return bool(response.data)

    async def find_by_job_handle(self, job_handle: str) -> Optional[Recording]:
        response = await self._run(
            lambda: self._select().eq("audo_job_id", job_handle).limit(1).execute()
        )
        if not response.data:
            return None
        return Recording.from_row(response.data[0])

    async def list_by_status(self, status: RecordingStatus) -> List[Recording]:
        response = await self._run(
            lambda: self._select().eq("status", status.value).execute()
        )
        return [Recording.from_row(row) for row in response.data or []]

    async def create_recording(self, owner_id: str, raw_audio_location: str) -> Recording:
        response = await self._run(
            lambda: self.client.table(self._table)
            .insert({
                "actor_id": owner_id,
                "raw_audio_url": raw_audio_location,
                "status": RecordingStatus.RAW.value,
            })
            .execute()
        )
        return Recording.from_row(response.data[0])
