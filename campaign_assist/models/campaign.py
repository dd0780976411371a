"""
Campaign draft model - the record the multi-step form fills in.
Job fields track the URL analysis currently in flight for the draft.
"""
import uuid
from datetime import datetime
from typing import Optional, List

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB

from campaign_assist.core.timeutils import utc_now

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB, "postgresql")

JOB_FIELDS = ("job_id", "job_status", "job_submitted_at", "job_completed_at")


class CampaignDraft(SQLModel, table=True):
    """
    Campaign draft entity.
    job_id is set only while an analysis job is PENDING or RUNNING.
    """
    __tablename__ = "campaign_draft"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Basic info (user owned)
    name: Optional[str] = Field(default=None, index=True)
    url: Optional[str] = None

    # Free text, user editable and AI fillable
    description: Optional[str] = None
    product_description: Optional[str] = None
    target_audience: Optional[str] = None

    # User curated; AI suggestions are never merged in here
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSONType))

    # Analysis job tracking
    job_id: Optional[str] = Field(default=None, index=True)
    job_status: Optional[str] = Field(default=None, index=True)  # PENDING, RUNNING, COMPLETED, FAILED
    job_submitted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    job_completed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True)))

    # Timestamps
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
