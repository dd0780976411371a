"""
Job poller - drives one analysis job to a terminal state.

    SUBMITTING --start--> POLLING
    POLLING --PENDING/RUNNING--> POLLING        (attempts += 1)
    POLLING --PENDING/RUNNING--> TIMED_OUT      (attempts == max_attempts)
    POLLING --COMPLETED--> COMPLETED
    POLLING --FAILED--> FAILED
    POLLING --transport error--> FAILED         (no retry)

Queries run strictly one after another: the next one is scheduled only
after the previous response has been handled. The loop is a plain
coroutine, so cancelling the task that runs it stops polling at once.
"""
import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from campaign_assist.config import settings
from campaign_assist.core.exceptions import (
    CampaignAssistException, JobFailed, JobTimeout, PollTransportError
)
from campaign_assist.core.timeutils import utc_now
from campaign_assist.models.analysis import JobStatus, PollState
from campaign_assist.schemas.analysis import AnalysisResult, JobStatusResponse, PollProgress
from campaign_assist.services.analysis_client import AnalysisClient

logger = logging.getLogger(__name__)


class PollEvent(str, Enum):
    START = "START"
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"

    @classmethod
    def from_status(cls, status: JobStatus) -> "PollEvent":
        return cls(status.value)


class IllegalTransition(CampaignAssistException):
    def __init__(self, state: PollState, event: PollEvent):
        super().__init__(f"No transition from {state.value} on {event.value}")


def transition(state: PollState, event: PollEvent, attempts: int = 0, max_attempts: int = 0) -> PollState:
    """Next poll state. Terminal states accept no events."""
    if state == PollState.SUBMITTING:
        if event == PollEvent.START:
            return PollState.POLLING
    elif state == PollState.POLLING:
        if event in (PollEvent.PENDING, PollEvent.RUNNING):
            if attempts >= max_attempts:
                return PollState.TIMED_OUT
            return PollState.POLLING
        if event == PollEvent.COMPLETED:
            return PollState.COMPLETED
        if event in (PollEvent.FAILED, PollEvent.TRANSPORT_ERROR):
            return PollState.FAILED
    raise IllegalTransition(state, event)


@dataclass
class PollOutcome:
    """Terminal result of one poll loop."""
    job_id: str
    state: PollState
    attempts: int
    result: Optional[AnalysisResult] = None
    error: Optional[CampaignAssistException] = None

    @property
    def job_status(self) -> JobStatus:
        return self.state.to_job_status()


ProgressCallback = Callable[[PollProgress], None]


class JobPoller:
    """Polls the analyze API for a single job until it settles."""

    def __init__(
        self,
        client: AnalysisClient,
        interval_ms: Optional[int] = None,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.interval_ms = settings.ANALYSIS_POLL_INTERVAL_MS if interval_ms is None else interval_ms
        self.max_attempts = settings.ANALYSIS_MAX_POLL_ATTEMPTS if max_attempts is None else max_attempts
        self._sleep = sleep

    async def poll(
        self,
        job_id: str,
        campaign_id: Optional[uuid.UUID] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PollOutcome:
        progress = PollProgress(
            campaign_id=campaign_id,
            job_id=job_id,
            max_attempts=self.max_attempts,
        )
        attempts = 0
        state = transition(PollState.SUBMITTING, PollEvent.START)
        self._publish(progress, on_progress, state=state)

        while True:
            await self._sleep(self.interval_ms / 1000)

            response: Optional[JobStatusResponse] = None
            outcome_error: Optional[CampaignAssistException] = None
            try:
                response = await self.client.get_status(job_id)
                event = PollEvent.from_status(response.status)
            except PollTransportError as e:
                logger.warning(f"Poll for job {job_id} failed, giving up: {e.message}")
                event = PollEvent.TRANSPORT_ERROR
                outcome_error = e

            if event in (PollEvent.PENDING, PollEvent.RUNNING):
                attempts += 1

            state = transition(state, event, attempts, self.max_attempts)

            if state == PollState.POLLING:
                self._publish(
                    progress, on_progress,
                    state=state,
                    attempts=attempts,
                    current_step=response.current_step,
                    progress_message=response.progress_message,
                )
                continue

            if state == PollState.COMPLETED:
                result = response.result or AnalysisResult()
                logger.info(f"Job {job_id} completed after {attempts} pending polls")
                self._publish(progress, on_progress, state=state, attempts=attempts,
                              suggested_tags=list(result.tags), error=None)
                return PollOutcome(job_id, state, attempts, result=result)

            if state == PollState.TIMED_OUT:
                outcome_error = JobTimeout(job_id, attempts)
                logger.warning(outcome_error.message)
            elif event == PollEvent.FAILED:
                outcome_error = JobFailed(job_id, response.error or response.progress_message)
                logger.warning(outcome_error.message)

            self._publish(progress, on_progress, state=state, attempts=attempts,
                          error=outcome_error.message)
            return PollOutcome(job_id, state, attempts, error=outcome_error)

    @staticmethod
    def _publish(progress: PollProgress, on_progress: Optional[ProgressCallback], **changes):
        for field, value in changes.items():
            setattr(progress, field, value)
        progress.updated_at = utc_now()
        if on_progress:
            on_progress(progress.model_copy())
