"""
Campaign draft schemas.
"""
import uuid
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class CampaignDraftCreate(BaseModel):
    """Create a new campaign draft (first form step)."""
    name: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    product_description: Optional[str] = None
    target_audience: Optional[str] = None
    tags: Optional[List[str]] = []

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "name": "Acme Q1 launch",
            "url": "https://acme.com",
            "tags": ["b2b"]
        }
    })


class CampaignDraftUpdate(BaseModel):
    """
    Update user-owned fields of a draft.
    Job fields are not accepted here; they belong to the analysis workflow.
    """
    name: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    product_description: Optional[str] = None
    target_audience: Optional[str] = None
    tags: Optional[List[str]] = None


class FormSnapshot(BaseModel):
    """Values of the AI-fillable fields as currently persisted on the draft."""
    description: Optional[str] = None
    product_description: Optional[str] = None
    target_audience: Optional[str] = None


class CampaignDraftResponse(BaseModel):
    """Campaign draft response."""
    id: uuid.UUID
    name: Optional[str]
    url: Optional[str]
    description: Optional[str]
    product_description: Optional[str]
    target_audience: Optional[str]
    tags: List[str]
    job_id: Optional[str]
    job_status: Optional[str]
    job_submitted_at: Optional[datetime]
    job_completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
