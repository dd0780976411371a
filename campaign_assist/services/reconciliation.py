"""
Reconciliation writer - folds a terminal job outcome into the campaign draft.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from campaign_assist.core.events import EventEmitter
from campaign_assist.core.exceptions import NotFoundError, PersistenceError
from campaign_assist.core.timeutils import utc_now
from campaign_assist.models.analysis import PollState
from campaign_assist.repositories.campaign_repo import CampaignDraftRepository
from campaign_assist.schemas.analysis import AnalysisResult
from campaign_assist.schemas.campaign import FormSnapshot
from campaign_assist.services.job_poller import PollOutcome

logger = logging.getLogger(__name__)

# draft field -> result field
RESULT_FIELD_MAP = {
    "description": "suggested_description",
    "product_description": "product_description",
    "target_audience": "target_audience",
}


def _has_text(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def merge_result_fields(result: AnalysisResult) -> dict:
    """
    Content fields to persist for a completed job.
    Only non-empty result values are written. An empty one is left out of
    the update, so whatever the draft currently holds stays in place.
    Tags are never part of the merge.
    """
    return {
        draft_field: getattr(result, result_field)
        for draft_field, result_field in RESULT_FIELD_MAP.items()
        if _has_text(getattr(result, result_field))
    }


def kept_fields(update: dict, snapshot: FormSnapshot) -> dict:
    """Current draft values that the update leaves untouched."""
    return {
        draft_field: getattr(snapshot, draft_field)
        for draft_field in RESULT_FIELD_MAP
        if draft_field not in update and getattr(snapshot, draft_field) is not None
    }


def build_terminal_update(outcome: PollOutcome, completed_at: datetime) -> dict:
    """The single partial update that closes a job."""
    update = {
        "job_status": outcome.job_status.value,
        "job_completed_at": completed_at,
        "job_id": None,
    }
    if outcome.state == PollState.COMPLETED and outcome.result is not None:
        update.update(merge_result_fields(outcome.result))
    return update


@dataclass
class ReconcileAck:
    campaign_id: uuid.UUID
    job_id: str
    job_status: str
    written: bool
    fields: dict = field(default_factory=dict)
    kept: dict = field(default_factory=dict)
    error: Optional[str] = None


class ReconciliationWriter:
    """
    Performs exactly one persisted update per job.

    The form snapshot is the draft as persisted at write time, read in the
    same session as the update. Edits the user saved while the job was
    running are part of it, and a content field the result leaves empty is
    not written at all.

    A failing write is logged and reported, never raised: the draft keeps
    its stale job_id and the user can resubmit.
    """

    def __init__(self, session_factory: sessionmaker, events: EventEmitter):
        self.session_factory = session_factory
        self.events = events

    async def reconcile(self, campaign_id: uuid.UUID, outcome: PollOutcome) -> ReconcileAck:
        try:
            async with self.session_factory() as session:
                repo = CampaignDraftRepository(session)
                draft = await repo.get(campaign_id)
                if draft is None:
                    raise NotFoundError("Campaign", str(campaign_id))
                snapshot = FormSnapshot.model_validate(draft, from_attributes=True)

                update = build_terminal_update(outcome, utc_now())
                kept = kept_fields(update, snapshot) if outcome.state == PollState.COMPLETED else {}
                await repo.update(campaign_id, update)
        except (SQLAlchemyError, NotFoundError) as e:
            error = PersistenceError(str(campaign_id), str(e))
            logger.error(error.message)
            self.events.notify("error", error.message, campaign_id=str(campaign_id), job_id=outcome.job_id)
            return ReconcileAck(campaign_id, outcome.job_id, outcome.job_status.value, written=False,
                                error=error.message)

        logger.info(
            f"Reconciled job {outcome.job_id} into campaign {campaign_id} as {outcome.job_status.value}"
            + (f", kept {sorted(kept)}" if kept else "")
        )
        return ReconcileAck(campaign_id, outcome.job_id, outcome.job_status.value, written=True,
                            fields=update, kept=kept)
