"""Test doubles and small helpers shared by the test modules."""

import asyncio
from typing import Dict, List, Optional
from urllib.parse import unquote

import httpx

from campaign_assist.core.events import EventEmitter, Events
from campaign_assist.models.campaign import CampaignDraft
from campaign_assist.services.analysis_client import AnalysisClient

STATUS_PREFIX = "/api/v1/analyze/status/"


class FakeAnalyzeAPI:
    """
    Scripted stand-in for the remote analyze API.

    statuses maps a job id to the responses returned for it, in order; the
    last one repeats. An entry may be a dict (200 JSON), an httpx.Response,
    or an httpx exception class to raise.
    """

    def __init__(
        self,
        submit_bodies: Optional[List[dict]] = None,
        submit_status: int = 200,
        statuses: Optional[Dict[str, list]] = None,
    ):
        self.submit_bodies = list(submit_bodies or [{"jobId": "job-1", "status": "PENDING"}])
        self.submit_status = submit_status
        self.submit_error = None
        self.statuses = {k: list(v) for k, v in (statuses or {}).items()}
        self.requests: List[httpx.Request] = []

    @property
    def submit_calls(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @property
    def status_calls(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    def status_calls_for(self, job_id: str) -> List[httpx.Request]:
        return [r for r in self.status_calls if self._job_id(r) == job_id]

    @staticmethod
    def _job_id(request: httpx.Request) -> str:
        raw_path = request.url.raw_path.decode().split("?")[0]
        return unquote(raw_path[len(STATUS_PREFIX):])

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST" and request.url.path == "/api/v1/analyze":
            if self.submit_error is not None:
                raise self.submit_error("connection refused", request=request)
            body = self.submit_bodies.pop(0) if len(self.submit_bodies) > 1 else self.submit_bodies[0]
            return httpx.Response(self.submit_status, json=body)

        if request.method == "GET" and request.url.path.startswith(STATUS_PREFIX):
            script = self.statuses.get(self._job_id(request))
            if not script:
                return httpx.Response(404, json={"error": "Job not found"})
            item = script.pop(0) if len(script) > 1 else script[0]
            if isinstance(item, type) and issubclass(item, httpx.HTTPError):
                raise item("connection reset", request=request)
            if isinstance(item, httpx.Response):
                return item
            return httpx.Response(200, json=item)

        return httpx.Response(404, json={"error": "Unknown route"})

    def client(self) -> AnalysisClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return AnalysisClient(client=http_client, base_url="http://analyze.test", api_key="test-key")


def pending(step: str = "crawl", message: str = "Reading the page") -> dict:
    return {"status": "PENDING", "currentStep": step, "progressMessage": message}


def completed(**result) -> dict:
    return {"status": "COMPLETED", "result": result, "completedAt": "2026-10-19T10:00:00Z"}


ACME_RESULT = {
    "tags": ["b2b", "saas"],
    "suggestedDescription": "X",
    "productDescription": "Y",
    "targetAudience": "Z",
}


class EventRecorder:
    """Collects every payload published on the emitter, by event name."""

    def __init__(self, events: EventEmitter):
        self.received: Dict[str, List[dict]] = {}
        for name in (Events.JOB_PROGRESS, Events.JOB_FINISHED, Events.CREDITS_CHANGED, Events.NOTIFICATION):
            events.on(name, lambda payload, name=name: self.received.setdefault(name, []).append(payload))

    def of(self, name: str) -> List[dict]:
        return self.received.get(name, [])


class Gate:
    """A sleep replacement that holds every poll until opened."""

    def __init__(self):
        self._event = asyncio.Event()
        self.calls = 0

    async def sleep(self, seconds: float):
        self.calls += 1
        await self._event.wait()

    def open(self):
        self._event.set()


async def load_draft(session_factory, draft_id) -> Optional[CampaignDraft]:
    async with session_factory() as session:
        return await session.get(CampaignDraft, draft_id)


async def save_draft(session_factory, **fields) -> CampaignDraft:
    async with session_factory() as session:
        draft = CampaignDraft(**fields)
        session.add(draft)
        await session.commit()
        await session.refresh(draft)
        return draft
