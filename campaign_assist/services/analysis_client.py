"""
Analyze API client.
Talks to the remote URL analysis service; every request carries the service key.
"""
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from pydantic import HttpUrl, TypeAdapter, ValidationError as PydanticValidationError

from campaign_assist.config import settings
from campaign_assist.core.exceptions import InvalidURLError, PollTransportError, SubmissionError
from campaign_assist.schemas.analysis import JobStatusResponse, SubmitResponse

logger = logging.getLogger(__name__)

_http_url = TypeAdapter(HttpUrl)


def validate_url(url: str) -> str:
    """Reject empty or malformed URLs before anything is sent."""
    if not url or not url.strip():
        raise InvalidURLError(url or "", "URL is required")
    try:
        _http_url.validate_python(url.strip())
    except PydanticValidationError:
        raise InvalidURLError(url)
    return url.strip()


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        return str(data.get("error") or data.get("message") or data)
    return str(data)


class AnalysisClient:
    """
    Thin async wrapper around the analyze API.

    POST {base}/api/v1/analyze                  -> {jobId, status}
    GET  {base}/api/v1/analyze/status/{jobId}   -> {status, currentStep, progressMessage, result, completedAt}
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.ANALYZE_API_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.ANALYZE_API_KEY
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=timeout or settings.ANALYZE_REQUEST_TIMEOUT_SECONDS
        )

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-API-Key": self.api_key,
        }

    def status_url(self, job_id: str) -> str:
        return f"{self.base_url}/api/v1/analyze/status/{quote(str(job_id), safe='')}"

    async def submit(self, url: str) -> SubmitResponse:
        """Start an analysis job. Raises SubmissionError on any failure."""
        url = validate_url(url)
        logger.info(f"Submitting analysis request for URL: {url}")

        try:
            response = await self.client.post(
                f"{self.base_url}/api/v1/analyze",
                json={"url": url},
                headers=self.headers
            )
        except httpx.HTTPError as e:
            logger.error(f"Analyze API unreachable: {e}")
            raise SubmissionError(str(e))

        if response.is_error:
            detail = _error_detail(response)
            logger.error(f"Analyze API error: {response.status_code} {detail}")
            raise SubmissionError(detail, status_code=response.status_code)

        try:
            job = SubmitResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise SubmissionError(f"Malformed submit response: {e}", status_code=response.status_code)

        logger.info(f"Analysis job created: {job.job_id} ({job.status.value})")
        return job

    async def fetch_status_raw(self, job_id: str) -> httpx.Response:
        """Forward a status request as-is. Transport errors surface as PollTransportError."""
        try:
            return await self.client.get(self.status_url(job_id), headers={"X-API-Key": self.api_key})
        except httpx.HTTPError as e:
            raise PollTransportError(job_id, str(e))

    async def get_status(self, job_id: str) -> JobStatusResponse:
        """Query job status once. Raises PollTransportError on any failure."""
        response = await self.fetch_status_raw(job_id)

        if response.is_error:
            detail = _error_detail(response)
            logger.error(f"Analyze API status error for {job_id}: {response.status_code} {detail}")
            raise PollTransportError(job_id, f"HTTP {response.status_code}: {detail}")

        try:
            data: Any = response.json()
            return JobStatusResponse.model_validate(data)
        except (ValueError, PydanticValidationError) as e:
            raise PollTransportError(job_id, f"Malformed status response: {e}")

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()
