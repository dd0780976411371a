"""
Analysis job enums.
Closed sets shared by the remote schemas, the poller and the draft model.
"""
from enum import Enum


class JobStatus(str, Enum):
    """Status as reported by the analysis service and mirrored on the draft."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class PollState(str, Enum):
    """Local poll loop state."""
    SUBMITTING = "SUBMITTING"
    POLLING = "POLLING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_POLL_STATES

    def to_job_status(self) -> JobStatus:
        """Persisted status for a terminal poll state. Timeouts persist as FAILED."""
        if self == PollState.COMPLETED:
            return JobStatus.COMPLETED
        if self in (PollState.FAILED, PollState.TIMED_OUT):
            return JobStatus.FAILED
        raise ValueError(f"{self.value} is not a terminal poll state")


TERMINAL_POLL_STATES = frozenset({PollState.COMPLETED, PollState.FAILED, PollState.TIMED_OUT})
