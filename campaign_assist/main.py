"""
Campaign Assist Backend - FastAPI Application
Main entry point with all routes configured.
"""
import logging

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from campaign_assist.config import settings
from campaign_assist.core.events import EventEmitter, Events
from campaign_assist.database import async_session_factory, init_db
from campaign_assist.schemas.common import HealthResponse
from campaign_assist.services.analysis_client import AnalysisClient
from campaign_assist.services.analysis_workflow import AnalysisWorkflow

# Import all API routers
from campaign_assist.api import analysis, campaigns

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _log_notification(payload: dict):
    logger.info(f"Notification [{payload.get('level')}]: {payload.get('message')}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    http_client = httpx.AsyncClient(timeout=settings.ANALYZE_REQUEST_TIMEOUT_SECONDS)
    events = EventEmitter()
    events.on(Events.NOTIFICATION, _log_notification)
    client = AnalysisClient(client=http_client)

    app.state.events = events
    app.state.analysis_client = client
    app.state.analysis_workflow = AnalysisWorkflow.build(client, async_session_factory, events)
    yield
    # Shutdown: poll tasks never outlive the app
    await app.state.analysis_workflow.shutdown()
    await http_client.aclose()


app = FastAPI(
    title="Campaign Assist API",
    description="Campaign drafts with background URL analysis",
    version="1.0.0",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL] if not settings.DEV_MODE else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include all routers
app.include_router(campaigns.router)
app.include_router(analysis.router)  # Submit, status proxy, progress


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "message": "Campaign Assist API is running",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Detailed health check."""
    return HealthResponse()
