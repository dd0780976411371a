"""
Analysis schemas.
Wire formats of the remote analyze API (camelCase) and the local analysis endpoints.
"""
import uuid
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator
from pydantic.alias_generators import to_camel

from campaign_assist.core.timeutils import utc_now
from campaign_assist.models.analysis import JobStatus, PollState
from campaign_assist.schemas.campaign import CampaignDraftCreate


def _normalize_status(value):
    if isinstance(value, str):
        return value.strip().upper()
    return value


class RemoteModel(BaseModel):
    """Base for payloads exchanged with the analyze API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalysisResult(RemoteModel):
    """Result block of a COMPLETED job."""
    tags: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("tags", "suggestedTags", "suggested_tags"),
    )
    suggested_description: Optional[str] = None
    product_description: Optional[str] = None
    target_audience: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def tags_default(cls, value):
        return value or []


class SubmitResponse(RemoteModel):
    """POST /analyze response."""
    job_id: str
    status: JobStatus = JobStatus.PENDING

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return _normalize_status(value)


class JobStatusResponse(RemoteModel):
    """GET /analyze/status/{jobId} response."""
    status: JobStatus
    current_step: Optional[str] = None
    progress_message: Optional[str] = None
    result: Optional[AnalysisResult] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        return _normalize_status(value)


class PollProgress(BaseModel):
    """Live view of a poll loop, read by the form while it keeps editing."""
    campaign_id: Optional[uuid.UUID] = None
    job_id: str
    state: PollState = PollState.SUBMITTING
    attempts: int = 0
    max_attempts: int = 0
    current_step: Optional[str] = None
    progress_message: Optional[str] = None
    # Advisory only, never merged into the draft's tags
    suggested_tags: List[str] = []
    error: Optional[str] = None
    updated_at: datetime = Field(default_factory=utc_now)


class AnalyzeRequest(BaseModel):
    """Submit a URL for analysis, for a new or an existing draft."""
    url: str
    campaign_id: Optional[uuid.UUID] = None
    form: Optional[CampaignDraftCreate] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "url": "https://acme.com",
            "form": {"name": "Acme launch"}
        }
    })


class AnalyzeResponse(BaseModel):
    """Accepted analysis job."""
    job_id: str
    status: JobStatus
    campaign_id: uuid.UUID
