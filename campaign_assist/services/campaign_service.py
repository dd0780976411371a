"""
Campaign draft service - draft management for the form.
"""
import uuid
from typing import Optional, List

from sqlmodel.ext.asyncio.session import AsyncSession

from campaign_assist.core.exceptions import raise_not_found
from campaign_assist.repositories.campaign_repo import CampaignDraftRepository
from campaign_assist.models.campaign import CampaignDraft
from campaign_assist.schemas.campaign import CampaignDraftCreate, CampaignDraftUpdate


class CampaignDraftService:
    """Service for campaign draft operations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.campaign_repo = CampaignDraftRepository(session)

    async def create(self, draft_data: CampaignDraftCreate) -> CampaignDraft:
        """Create a new draft without an analysis job."""
        return await self.campaign_repo.create(draft_data.model_dump())

    async def get(self, campaign_id: uuid.UUID) -> CampaignDraft:
        """Get a draft by ID."""
        draft = await self.campaign_repo.get(campaign_id)
        if not draft:
            raise_not_found("Campaign", str(campaign_id))
        return draft

    async def list(self, job_status: Optional[str] = None) -> List[CampaignDraft]:
        """List drafts, newest first, optionally by job status."""
        return await self.campaign_repo.list(filters={"job_status": job_status})

    async def update(self, campaign_id: uuid.UUID, draft_data: CampaignDraftUpdate) -> CampaignDraft:
        """
        Update the user-owned fields that were sent.
        Unsent fields stay as they are, so an analysis write is never clobbered.
        """
        update_data = draft_data.model_dump(exclude_unset=True)
        draft = await self.campaign_repo.update_user_fields(campaign_id, update_data)
        if not draft:
            raise_not_found("Campaign", str(campaign_id))
        return draft
