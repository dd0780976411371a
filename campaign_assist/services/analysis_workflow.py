"""
Analysis workflow - submit, poll in the background, reconcile once.

Owns every poll task so they live and die with the application: a newer
submission for the same draft supersedes the older one, and a terminal
outcome is only written if its job id is still the accepted one for that
draft (last submitted job wins).
"""
import asyncio
import logging
import uuid
from datetime import timedelta
from typing import Awaitable, Callable, Dict, Optional

from sqlalchemy.orm import sessionmaker

from campaign_assist.config import settings
from campaign_assist.core.events import EventEmitter, Events
from campaign_assist.core.exceptions import CampaignAssistException
from campaign_assist.core.timeutils import utc_now
from campaign_assist.models.analysis import PollState
from campaign_assist.schemas.analysis import PollProgress
from campaign_assist.schemas.campaign import CampaignDraftCreate
from campaign_assist.services.analysis_client import AnalysisClient
from campaign_assist.services.job_poller import JobPoller, PollOutcome
from campaign_assist.services.job_submitter import JobSubmitter, SubmissionOutcome
from campaign_assist.services.reconciliation import ReconcileAck, ReconciliationWriter

logger = logging.getLogger(__name__)


class AnalysisWorkflow:
    """Coordinates JobSubmitter, JobPoller and ReconciliationWriter per draft."""

    def __init__(
        self,
        submitter: JobSubmitter,
        poller: JobPoller,
        writer: ReconciliationWriter,
        events: EventEmitter,
        progress_retention_seconds: Optional[float] = None,
    ):
        self.submitter = submitter
        self.poller = poller
        self.writer = writer
        self.events = events
        self.progress_retention = timedelta(seconds=(
            settings.ANALYSIS_PROGRESS_RETENTION_SECONDS
            if progress_retention_seconds is None else progress_retention_seconds
        ))
        self._tasks: Dict[uuid.UUID, asyncio.Task] = {}
        self._accepted: Dict[uuid.UUID, str] = {}
        self._progress: Dict[uuid.UUID, PollProgress] = {}

    @classmethod
    def build(
        cls,
        client: AnalysisClient,
        session_factory: sessionmaker,
        events: EventEmitter,
        interval_ms: Optional[int] = None,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        progress_retention_seconds: Optional[float] = None,
    ) -> "AnalysisWorkflow":
        return cls(
            submitter=JobSubmitter(client, session_factory, events),
            poller=JobPoller(client, interval_ms=interval_ms, max_attempts=max_attempts, sleep=sleep),
            writer=ReconciliationWriter(session_factory, events),
            events=events,
            progress_retention_seconds=progress_retention_seconds,
        )

    async def start(
        self,
        url: str,
        campaign_id: Optional[uuid.UUID] = None,
        form: Optional[CampaignDraftCreate] = None,
    ) -> SubmissionOutcome:
        """
        Submit the URL and start polling in the background.
        Submission errors are published as a notification and re-raised;
        nothing is scheduled in that case.
        """
        try:
            submission = await self.submitter.submit(url, campaign_id, form)
        except CampaignAssistException as e:
            self.events.notify("error", e.message, url=url)
            raise

        self._prune_progress()
        key = submission.campaign_id
        self._supersede(key)
        self._accepted[key] = submission.job_id
        self._progress[key] = PollProgress(
            campaign_id=key,
            job_id=submission.job_id,
            state=PollState.SUBMITTING,
            max_attempts=self.poller.max_attempts,
        )

        task = asyncio.create_task(
            self._run(key, submission.job_id),
            name=f"analysis-{submission.job_id}",
        )
        self._tasks[key] = task
        task.add_done_callback(lambda t, key=key: self._forget(key, t))
        return submission

    def progress(self, campaign_id: uuid.UUID) -> Optional[PollProgress]:
        """
        Latest progress for the draft. A terminal entry is handed out once
        and then dropped.
        """
        self._prune_progress()
        progress = self._progress.get(campaign_id)
        if progress is not None and progress.state.is_terminal and not self.is_running(campaign_id):
            del self._progress[campaign_id]
        return progress

    def is_running(self, campaign_id: uuid.UUID) -> bool:
        task = self._tasks.get(campaign_id)
        return task is not None and not task.done()

    def cancel(self, campaign_id: uuid.UUID) -> bool:
        """Stop polling for a draft. No write happens for the cancelled job."""
        self._accepted.pop(campaign_id, None)
        self._progress.pop(campaign_id, None)
        task = self._tasks.get(campaign_id)
        if task is None or task.done():
            return False
        task.cancel()
        logger.info(f"Cancelled analysis polling for campaign {campaign_id}")
        return True

    async def wait(self, campaign_id: uuid.UUID) -> Optional[ReconcileAck]:
        """Await the draft's current task, if any."""
        task = self._tasks.get(campaign_id)
        if task is None:
            return None
        try:
            return await task
        except asyncio.CancelledError:
            return None

    async def shutdown(self):
        """Cancel every poll task and wait for them to unwind."""
        tasks = [t for t in self._tasks.values() if not t.done()]
        self._accepted.clear()
        self._progress.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Stopped {len(tasks)} analysis poll task(s)")

    async def _run(
        self,
        campaign_id: uuid.UUID,
        job_id: str,
    ) -> Optional[ReconcileAck]:
        try:
            outcome = await self.poller.poll(
                job_id,
                campaign_id=campaign_id,
                on_progress=lambda p: self._on_progress(campaign_id, p),
            )
        except asyncio.CancelledError:
            logger.info(f"Polling for job {job_id} cancelled")
            raise
        except Exception as e:
            logger.exception(f"Polling for job {job_id} crashed")
            self.events.notify("error", f"Analysis of job '{job_id}' stopped unexpectedly: {e}",
                               campaign_id=str(campaign_id), job_id=job_id)
            return None

        if self._accepted.get(campaign_id) != job_id:
            logger.warning(f"Discarding {outcome.state.value} outcome of superseded job {job_id} "
                           f"for campaign {campaign_id}")
            return None

        # The write finishes even if this task is cancelled meanwhile
        ack = await asyncio.shield(self.writer.reconcile(campaign_id, outcome))
        if self._accepted.get(campaign_id) == job_id:
            del self._accepted[campaign_id]
        self._announce(campaign_id, outcome, ack)
        return ack

    def _on_progress(self, campaign_id: uuid.UUID, progress: PollProgress):
        if self._accepted.get(campaign_id) != progress.job_id:
            return
        self._progress[campaign_id] = progress
        self.events.emit(Events.JOB_PROGRESS, progress.model_dump(mode="json"))

    def _announce(self, campaign_id: uuid.UUID, outcome: PollOutcome, ack: ReconcileAck):
        self.events.emit(Events.JOB_FINISHED, {
            "campaign_id": str(campaign_id),
            "job_id": outcome.job_id,
            "state": outcome.state.value,
            "job_status": outcome.job_status.value,
            "written": ack.written,
        })
        if outcome.error is not None:
            self.events.notify("error", outcome.error.message,
                               campaign_id=str(campaign_id), job_id=outcome.job_id)
        elif ack.written:
            self.events.notify("success", "Analysis complete. Suggestions were added to your campaign.",
                               campaign_id=str(campaign_id), job_id=outcome.job_id)

    def _prune_progress(self):
        """Drop terminal entries nobody collected within the retention window."""
        cutoff = utc_now() - self.progress_retention
        stale = [
            key for key, progress in self._progress.items()
            if progress.state.is_terminal and progress.updated_at < cutoff
        ]
        for key in stale:
            del self._progress[key]

    def _forget(self, campaign_id: uuid.UUID, task: asyncio.Task):
        if self._tasks.get(campaign_id) is task:
            del self._tasks[campaign_id]

    def _supersede(self, campaign_id: uuid.UUID):
        previous = self._tasks.get(campaign_id)
        if previous is not None and not previous.done():
            logger.info(f"New analysis for campaign {campaign_id} supersedes job "
                        f"{self._accepted.get(campaign_id)}")
            previous.cancel()
