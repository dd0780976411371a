"""
Campaign drafts API routes.
"""
import uuid
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from campaign_assist.database import get_session
from campaign_assist.services.campaign_service import CampaignDraftService
from campaign_assist.schemas.campaign import CampaignDraftCreate, CampaignDraftUpdate, CampaignDraftResponse

router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])


@router.post("/", response_model=CampaignDraftResponse, status_code=201)
async def create_campaign(
    draft_data: CampaignDraftCreate,
    session: AsyncSession = Depends(get_session)
):
    """Create a new campaign draft."""
    campaign_service = CampaignDraftService(session)
    return await campaign_service.create(draft_data)


@router.get("/", response_model=List[CampaignDraftResponse])
async def list_campaigns(
    job_status: Optional[str] = None,
    session: AsyncSession = Depends(get_session)
):
    """List campaign drafts with optional job status filter."""
    campaign_service = CampaignDraftService(session)
    return await campaign_service.list(job_status)


@router.get("/{campaign_id}", response_model=CampaignDraftResponse)
async def get_campaign(
    campaign_id: uuid.UUID,
    session: AsyncSession = Depends(get_session)
):
    """Get a campaign draft by ID."""
    campaign_service = CampaignDraftService(session)
    return await campaign_service.get(campaign_id)


@router.patch("/{campaign_id}", response_model=CampaignDraftResponse)
async def update_campaign(
    campaign_id: uuid.UUID,
    draft_data: CampaignDraftUpdate,
    session: AsyncSession = Depends(get_session)
):
    """Update user-owned fields of a campaign draft."""
    campaign_service = CampaignDraftService(session)
    return await campaign_service.update(campaign_id, draft_data)
