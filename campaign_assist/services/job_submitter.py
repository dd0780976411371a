"""
Job submitter - starts an analysis job and ties it to a campaign draft.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from campaign_assist.core.events import EventEmitter, Events
from campaign_assist.core.exceptions import NotFoundError, PersistenceError
from campaign_assist.models.analysis import JobStatus
from campaign_assist.repositories.campaign_repo import CampaignDraftRepository
from campaign_assist.schemas.campaign import CampaignDraftCreate
from campaign_assist.services.analysis_client import AnalysisClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionOutcome:
    job_id: str
    status: JobStatus
    campaign_id: uuid.UUID
    is_new: bool


class JobSubmitter:
    """
    New campaign: one remote call, then one persisted create carrying the job.
    Existing campaign: one remote call, no write; the job id only tags the
    polling context and the draft's job fields are set by reconciliation.
    """

    def __init__(self, client: AnalysisClient, session_factory: sessionmaker, events: EventEmitter):
        self.client = client
        self.session_factory = session_factory
        self.events = events

    async def submit(
        self,
        url: str,
        campaign_id: Optional[uuid.UUID] = None,
        form: Optional[CampaignDraftCreate] = None
    ) -> SubmissionOutcome:
        """Raises SubmissionError (nothing created) or NotFoundError (unknown draft)."""
        if campaign_id is not None:
            async with self.session_factory() as session:
                if await CampaignDraftRepository(session).get(campaign_id) is None:
                    raise NotFoundError("Campaign", str(campaign_id))

        job = await self.client.submit(url)
        self.events.emit(Events.CREDITS_CHANGED, {"job_id": job.job_id})

        if campaign_id is not None:
            logger.info(f"Job {job.job_id} submitted for existing campaign {campaign_id}")
            return SubmissionOutcome(job.job_id, job.status, campaign_id, is_new=False)

        fields = form.model_dump(exclude_unset=True) if form else {}
        fields.setdefault("url", url)
        # job_id is only ever stored next to a non-terminal status; the poller settles the rest
        status = JobStatus.PENDING if job.status.is_terminal else job.status
        try:
            async with self.session_factory() as session:
                draft = await CampaignDraftRepository(session).create_with_job(
                    job.job_id, status, fields
                )
        except SQLAlchemyError as e:
            logger.error(f"Could not create draft for job {job.job_id}: {e}")
            raise PersistenceError("new draft", str(e))
        logger.info(f"Created campaign draft {draft.id} for job {job.job_id}")
        return SubmissionOutcome(job.job_id, job.status, draft.id, is_new=True)
