"""Transcription job states and terminal outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

UNKNOWN_FAILURE_REASON = "Unknown failure reason"


class JobState(str, Enum):
    """Poller states. Only COMPLETED and FAILED produce a return value."""

    CHECKING = "checking"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"

    @classmethod
    def from_service(cls, status: str | None) -> JobState | None:
        """Map an Amazon Transcribe TranscriptionJobStatus to a poller state.

        QUEUED is treated as in progress. Unrecognised values return None.
        """
        return _SERVICE_STATUS.get(status or "")


_SERVICE_STATUS: dict[str, JobState] = {
    "QUEUED": JobState.IN_PROGRESS,
    "IN_PROGRESS": JobState.IN_PROGRESS,
    "COMPLETED": JobState.COMPLETED,
    "FAILED": JobState.FAILED,
}


@dataclass(frozen=True)
class Completed:
    """The job finished and its transcript is available at ``result_uri``."""

    result_uri: str


@dataclass(frozen=True)
class Failed:
    """The service reported the job as failed."""

    reason: str = UNKNOWN_FAILURE_REASON


TranscriptionStatus = Completed | Failed
