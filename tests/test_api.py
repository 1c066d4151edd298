import pytest
from httpx import AsyncClient, ASGITransport

from audio_cleaner.api.v1 import recordings as recordings_api
from audio_cleaner.config import settings
from audio_cleaner.main import app
from audio_cleaner.processor.base import ProcessorState, RemoteError
from audio_cleaner.recordings.models import RecordingStatus

from conftest import OWNER, STRANGER, make_recording


def auth(caller: str = OWNER) -> dict:
    return {"Authorization": f"Bearer {caller}"}


@pytest.fixture(autouse=True)
def wire_app(coordinator, monkeypatch):
    """Use the in-memory store, with the bearer token as the caller id."""
    monkeypatch.setattr(settings, "store_backend", "memory")
    monkeypatch.setattr(settings, "webhook_secret", None)
    recordings_api.set_coordinator(coordinator)
    recordings_api.set_poller(None)
    yield
    recordings_api.set_coordinator(None)


@pytest.fixture
def client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")


@pytest.mark.asyncio
async def test_health(client):
    async with client as ac:
        res = await ac.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_register_clean_and_poll(client, store, processor):
    async with client as ac:
        res = await ac.post(
            "/api/v1/recordings", json={"raw_audio_url": "https://storage/a.webm"}, headers=auth()
        )
        assert res.status_code == 201
        recording_id = res.json()["id"]
        assert res.json()["status"] == "raw"

        res = await ac.post(f"/api/v1/recordings/{recording_id}/clean", headers=auth())
        assert res.status_code == 202
        assert res.json()["job_id"] == "job-123"
        assert res.json()["polling"] is False

        res = await ac.post(f"/api/v1/recordings/{recording_id}/poll", headers=auth())
        assert res.json() == {
            "recording_id": recording_id,
            "status": "cleaning",
            "terminal": False,
            "cleaned_audio_url": None,
        }

        processor.report(ProcessorState.SUCCEEDED, output_uri="https://cdn/a.wav")
        res = await ac.post(f"/api/v1/recordings/{recording_id}/poll", headers=auth())
        assert res.json()["terminal"] is True
        assert res.json()["cleaned_audio_url"] == "https://cdn/a.wav"

        res = await ac.get(f"/api/v1/recordings/{recording_id}", headers=auth())
        assert res.json()["status"] == "cleaned"
        assert res.json()["audo_job_id"] == "job-123"


@pytest.mark.asyncio
async def test_error_mapping(client, store, processor):
    store.add(make_recording("busy", RecordingStatus.CLEANING, job_handle="job-456"))
    store.add(make_recording("fresh"))
    processor.create_error = RemoteError("Audo.ai API error: 500 boom")

    async with client as ac:
        assert (await ac.get("/api/v1/recordings/nope", headers=auth())).status_code == 404
        assert (await ac.get("/api/v1/recordings/busy", headers=auth(STRANGER))).status_code == 403

        res = await ac.post("/api/v1/recordings/busy/clean", headers=auth())
        assert res.status_code == 409
        assert res.json()["error"] == "already_in_progress"

        res = await ac.post("/api/v1/recordings/fresh/clean", headers=auth())
        assert res.status_code == 502
        assert "boom" in res.json()["detail"]

        processor.fail_next_status()
        res = await ac.post("/api/v1/recordings/busy/poll", headers=auth())
        assert res.status_code == 503

    assert (await store.get_recording("fresh")).status == RecordingStatus.ERROR
    assert (await store.get_recording("busy")).status == RecordingStatus.CLEANING


@pytest.mark.asyncio
async def test_missing_token_is_unauthorized(client):
    async with client as ac:
        res = await ac.get("/api/v1/recordings/r1")
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_webhook_updates_recording(client, store):
    store.add(make_recording("r1", RecordingStatus.CLEANING, job_handle="job-1"))

    async with client as ac:
        res = await ac.post(
            "/api/v1/webhooks/processor",
            json={"jobId": "job-1", "status": "succeeded", "downloadUrl": "https://cdn/1.wav"},
        )
        assert res.status_code == 200
        assert res.json()["status"] == "cleaned"

        res = await ac.post("/api/v1/webhooks/processor", json={"jobId": "job-x", "status": "failed"})
        assert res.json() == {"acknowledged": True, "recording_id": None, "status": None}

    assert (await store.get_recording("r1")).cleaned_audio_location == "https://cdn/1.wav"


@pytest.mark.asyncio
async def test_webhook_rejects_bad_token_and_incomplete_success(client, store, monkeypatch):
    store.add(make_recording("r2", RecordingStatus.CLEANING, job_handle="job-2"))
    monkeypatch.setattr(settings, "webhook_secret", "s3cret")

    async with client as ac:
        res = await ac.post(
            "/api/v1/webhooks/processor?token=wrong", json={"jobId": "job-2", "status": "failed"}
        )
        assert res.status_code == 401

        res = await ac.post(
            "/api/v1/webhooks/processor?token=s3cret", json={"jobId": "job-2", "status": "succeeded"}
        )
        assert res.status_code == 400

    assert (await store.get_recording("r2")).status == RecordingStatus.CLEANING
