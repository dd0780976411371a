"""
Campaign draft repository.
"""
import uuid
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from campaign_assist.core.timeutils import utc_now
from campaign_assist.models.analysis import JobStatus
from campaign_assist.models.campaign import CampaignDraft, JOB_FIELDS
from campaign_assist.repositories.base import BaseRepository


class CampaignDraftRepository(BaseRepository[CampaignDraft]):
    """Repository for CampaignDraft operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(CampaignDraft, session)

    async def create_with_job(
        self,
        job_id: str,
        job_status: JobStatus,
        fields: Optional[dict] = None
    ) -> CampaignDraft:
        """Create a draft that already carries an in-flight analysis job."""
        data = dict(fields or {})
        data.update({
            "job_id": job_id,
            "job_status": job_status.value,
            "job_submitted_at": utc_now(),
        })
        return await self.create(data)

    async def update_user_fields(self, draft_id: uuid.UUID, obj_in: dict) -> Optional[CampaignDraft]:
        """Partial update from the form. Job fields are ignored."""
        data = {k: v for k, v in obj_in.items() if k not in JOB_FIELDS}
        return await self.update(draft_id, data)
