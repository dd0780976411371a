"""Shared fixtures: in-memory database, scripted analyze API, event recorder."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import asyncio

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from campaign_assist.core.events import EventEmitter
from campaign_assist.database import build_session_factory, init_db
from campaign_assist.services.analysis_workflow import AnalysisWorkflow
from tests.helpers import EventRecorder, FakeAnalyzeAPI


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def events():
    return EventEmitter()


@pytest.fixture
def recorder(events):
    return EventRecorder(events)


@pytest.fixture
def fake_api():
    return FakeAnalyzeAPI()


@pytest.fixture
async def analysis_client(fake_api):
    client = fake_api.client()
    yield client
    await client.client.aclose()


@pytest.fixture
def make_workflow(analysis_client, session_factory, events):
    """Workflow with a zero poll interval; pass a Gate's sleep to hold polls."""
    def _make(max_attempts: int = 60, sleep=None) -> AnalysisWorkflow:
        return AnalysisWorkflow.build(
            analysis_client,
            session_factory,
            events,
            interval_ms=0,
            max_attempts=max_attempts,
            sleep=sleep or asyncio.sleep,
        )
    return _make
