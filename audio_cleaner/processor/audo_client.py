"""Audo.ai noise-reduction client.

POST {base}/remove-noise                 -> {"jobId": ...}
GET  {base}/remove-noise/{jobId}/status  -> {"state", "downloadPath"?, "reason"?}

`downloadPath` is relative to the API base, e.g. "dl/artifacts/clean/...".
"""

from typing import Optional

import httpx

from audio_cleaner.config import settings
from audio_cleaner.logger import get_logger
from audio_cleaner.processor.base import (
    JobProcessor,
    ProcessorJobStatus,
    ProcessorState,
    RemoteError,
    TransportError,
)

logger = get_logger(__name__)

# Anything the processor reports that we don't recognise is still running
_STATE_MAP = {
    "succeeded": ProcessorState.SUCCEEDED,
    "failed": ProcessorState.FAILED,
    "in_progress": ProcessorState.IN_PROGRESS,
    "downloading": ProcessorState.IN_PROGRESS,
    "queued": ProcessorState.QUEUED,
}


class AudoClient(JobProcessor):

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.processor_api_key
        self.base_url = (base_url or settings.processor_base_url).rstrip("/")
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout or settings.processor_timeout_seconds
        )

    def _headers(self) -> dict:
        return {"x-api-key": self.api_key, "Content-Type": "application/json"}

    async def create_job(self, source_uri: str, callback_uri: Optional[str] = None) -> str:
        payload = {"input": source_uri}
        if callback_uri:
            payload["webhookUrl"] = callback_uri

        try:
            response = await self._client.post(
                f"{self.base_url}/remove-noise", json=payload, headers=self._headers()
            )
        except httpx.HTTPError as e:
            raise RemoteError(f"Audo.ai unreachable: {type(e).__name__}: {e}") from e

        if response.status_code >= 400:
            raise RemoteError(f"Audo.ai API error: {response.status_code} {response.text}")

        try:
            body = response.json()
        except ValueError as e:
            raise RemoteError(f"Audo.ai returned invalid JSON: {response.text}") from e
        if not isinstance(body, dict):
            raise RemoteError(f"Audo.ai returned unexpected JSON: {response.text}")
        job_id = body.get("jobId")
        if not job_id:
            raise RemoteError(f"Audo.ai response missing jobId: {response.text}")

        logger.info(f"Audo.ai accepted {source_uri} as job {job_id}")
        return str(job_id)

    async def get_job_status(self, job_handle: str) -> ProcessorJobStatus:
        try:
            response = await self._client.get(
                f"{self.base_url}/remove-noise/{job_handle}/status",
                headers=self._headers(),
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Audo.ai status check failed: {type(e).__name__}: {e}") from e

        if response.status_code >= 400:
            raise TransportError(f"Audo.ai status check failed: {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise TransportError(f"Audo.ai returned invalid JSON for job {job_handle}") from e
        if not isinstance(result, dict):
            raise TransportError(f"Audo.ai returned unexpected JSON for job {job_handle}")

        state = _STATE_MAP.get(result.get("state"), ProcessorState.IN_PROGRESS)
        output_uri = None
        if state == ProcessorState.SUCCEEDED:
            output_uri = self._download_url(result.get("downloadPath"))

        return ProcessorJobStatus(state=state, output_uri=output_uri, reason=result.get("reason"))

    def _download_url(self, download_path: Optional[str]) -> Optional[str]:
        if not download_path:
            return None
        if download_path.startswith(("http://", "https://")):
            return download_path
        return f"{self.base_url}/{download_path.lstrip('/')}"

    async def aclose(self) -> None:
        await self._client.aclose()
