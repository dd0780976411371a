"""HTTP API tests against the FastAPI app with test doubles wired into app.state."""

import uuid

import httpx
import pytest

from campaign_assist.database import get_session
from campaign_assist.main import app
from tests.helpers import ACME_RESULT, Gate, completed, pending


@pytest.fixture
async def api(make_workflow, analysis_client, session_factory, events):
    workflow = make_workflow()

    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.state.events = events
    app.state.analysis_client = analysis_client
    app.state.analysis_workflow = workflow

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    await workflow.shutdown()
    app.dependency_overrides.clear()


async def test_health(api):
    response = await api.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_submit_new_campaign_and_reconcile(api, fake_api):
    fake_api.statuses = {"job-1": [pending(), pending(), completed(**ACME_RESULT)]}

    response = await api.post("/api/analyze", json={"url": "https://acme.com", "form": {"name": "Acme"}})

    assert response.status_code == 202
    body = response.json()
    assert body["job_id"] == "job-1"
    assert body["status"] == "PENDING"
    campaign_id = uuid.UUID(body["campaign_id"])

    await app.state.analysis_workflow.wait(campaign_id)

    draft = (await api.get(f"/api/campaigns/{campaign_id}")).json()
    assert draft["name"] == "Acme"
    assert draft["job_status"] == "COMPLETED"
    assert draft["job_id"] is None
    assert draft["description"] == "X"
    assert draft["tags"] == []

    progress = (await api.get(f"/api/campaigns/{campaign_id}/analysis")).json()
    assert progress["state"] == "COMPLETED"
    assert progress["suggested_tags"] == ["b2b", "saas"]


async def test_submit_invalid_url_is_bad_request(api, fake_api):
    response = await api.post("/api/analyze", json={"url": "not a url"})
    assert response.status_code == 400
    assert fake_api.requests == []


async def test_submit_upstream_error_is_bad_gateway(api, fake_api):
    fake_api.submit_status = 500
    fake_api.submit_bodies = [{"error": "Internal server error"}]

    response = await api.post("/api/analyze", json={"url": "https://acme.com"})

    assert response.status_code == 502
    assert (await api.get("/api/campaigns/")).json() == []
    assert fake_api.status_calls == []


async def test_submit_for_unknown_campaign_is_not_found(api):
    response = await api.post("/api/analyze", json={"url": "https://acme.com", "campaign_id": str(uuid.uuid4())})
    assert response.status_code == 404


async def test_status_proxy_attaches_service_key(api, fake_api):
    fake_api.statuses = {"job 1": [pending(step="crawl")]}

    response = await api.get("/api/analyze/status/job%201")

    assert response.status_code == 200
    assert response.json()["currentStep"] == "crawl"
    forwarded = fake_api.status_calls[0]
    assert forwarded.headers["X-API-Key"] == "test-key"
    assert forwarded.url.raw_path == b"/api/v1/analyze/status/job%201"


async def test_status_proxy_forwards_upstream_errors(api):
    response = await api.get("/api/analyze/status/unknown-job")

    assert response.status_code == 404
    assert response.json()["error"] == "Job not found"


async def test_patch_ignores_job_fields(api, fake_api):
    gate = Gate()
    app.state.analysis_workflow.poller._sleep = gate.sleep
    created = await api.post("/api/analyze", json={"url": "https://acme.com"})
    campaign_id = created.json()["campaign_id"]

    response = await api.patch(
        f"/api/campaigns/{campaign_id}",
        json={"name": "Renamed", "job_id": None, "job_status": "COMPLETED"},
    )

    assert response.status_code == 200
    draft = response.json()
    assert draft["name"] == "Renamed"
    assert draft["job_id"] == "job-1"
    assert draft["job_status"] == "PENDING"


async def test_cancel_running_analysis(api):
    gate = Gate()
    app.state.analysis_workflow.poller._sleep = gate.sleep
    created = await api.post("/api/analyze", json={"url": "https://acme.com"})
    campaign_id = created.json()["campaign_id"]

    response = await api.delete(f"/api/campaigns/{campaign_id}/analysis")
    assert response.status_code == 200

    again = await api.delete(f"/api/campaigns/{campaign_id}/analysis")
    assert again.status_code == 404


async def test_progress_without_analysis_is_not_found(api):
    created = await api.post("/api/campaigns/", json={"name": "Manual"})
    assert created.status_code == 201

    response = await api.get(f"/api/campaigns/{created.json()['id']}/analysis")
    assert response.status_code == 404


async def test_patch_while_polling_is_not_overwritten(api, fake_api):
    fake_api.statuses = {"job-1": [completed(suggestedDescription="X", targetAudience="")]}
    gate = Gate()
    workflow = app.state.analysis_workflow
    workflow.poller._sleep = gate.sleep
    created = await api.post(
        "/api/analyze",
        json={"url": "https://acme.com", "form": {"target_audience": "old audience"}},
    )
    campaign_id = created.json()["campaign_id"]

    patched = await api.patch(f"/api/campaigns/{campaign_id}", json={"target_audience": "new audience"})
    assert patched.status_code == 200
    gate.open()
    await workflow.wait(uuid.UUID(campaign_id))

    draft = (await api.get(f"/api/campaigns/{campaign_id}")).json()
    assert draft["job_status"] == "COMPLETED"
    assert draft["target_audience"] == "new audience"
    assert draft["description"] == "X"
