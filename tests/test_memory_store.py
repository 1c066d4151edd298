import pytest

from audio_cleaner.recordings.errors import RecordingNotFound
from audio_cleaner.recordings.models import RecordingStatus

from conftest import OWNER, make_recording


@pytest.mark.asyncio
async def test_compare_and_set_applies_only_on_expected_status(store):
    store.add(make_recording("r1"))

    assert await store.compare_and_set_status("r1", RecordingStatus.CLEANING, RecordingStatus.ERROR) is False
    assert await store.compare_and_set_status(
        "r1", RecordingStatus.RAW, RecordingStatus.CLEANING, {"external_job_handle": "job-1"}
    ) is True

    recording = await store.get_recording("r1")
    assert recording.status == RecordingStatus.CLEANING
    assert recording.external_job_handle == "job-1"
    assert recording.updated_at is not None


@pytest.mark.asyncio
async def test_compare_and_set_checks_job_handle(store):
    store.add(make_recording("r2", RecordingStatus.CLEANING, job_handle="job-new"))

    assert await store.compare_and_set_status(
        "r2", RecordingStatus.CLEANING, RecordingStatus.ERROR, expected_job_handle="job-old"
    ) is False
    assert (await store.get_recording("r2")).status == RecordingStatus.CLEANING


@pytest.mark.asyncio
async def test_compare_and_set_refuses_immutable_fields(store):
    store.add(make_recording("r3"))

    with pytest.raises(ValueError):
        await store.compare_and_set_status(
            "r3", RecordingStatus.RAW, RecordingStatus.CLEANING, {"owner_id": "someone-else"}
        )


@pytest.mark.asyncio
async def test_returned_recordings_are_copies(store):
    store.add(make_recording("r4"))

    recording = await store.get_recording("r4")
    recording.status = RecordingStatus.CLEANED

    assert (await store.get_recording("r4")).status == RecordingStatus.RAW


@pytest.mark.asyncio
async def test_lookup_helpers(store):
    created = await store.create_recording(OWNER, "https://storage/new.webm")
    store.add(make_recording("r5", RecordingStatus.CLEANING, job_handle="job-5"))

    assert created.status == RecordingStatus.RAW
    assert (await store.find_by_job_handle("job-5")).id == "r5"
    assert await store.find_by_job_handle("job-none") is None
    assert [r.id for r in await store.list_by_status(RecordingStatus.CLEANING)] == ["r5"]

    with pytest.raises(RecordingNotFound):
        await store.get_recording("missing")
