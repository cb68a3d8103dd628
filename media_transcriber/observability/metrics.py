"""Run metrics collection and reporting.

Provides the RunMetrics dataclass for structured observability data,
StageTimer context manager for measuring pipeline stage durations,
and log_run_metrics() for emitting metrics as one structured log record.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime

logger = logging.getLogger(__name__)


@dataclass
class RunMetrics:
    """All metrics collected for a single transcription run."""

    job_name: str
    status: str
    file_size_bytes: int
    transfer_plan: str
    wall_time_seconds: float
    stage_timings: dict[str, float] = field(default_factory=dict)
    error_stage: str | None = None
    error_message: str | None = None


class StageTimer:
    """Context manager that records wall-clock duration of a pipeline stage.

    The measured duration is stored on the timer and, when a ``timings`` dict
    is supplied, recorded under the stage name. Stages that raise are recorded
    under ``_<stage>_failed`` so partial runs still report where time went.

    Usage:
        timings = {}
        with StageTimer("upload", timings):
            await upload()
    """

    def __init__(self, stage_name: str, timings: dict[str, float] | None = None) -> None:
        self.stage_name = stage_name
        self.start_time: datetime | None = None
        self.end_time: datetime | None = None
        self.duration_seconds: float = 0.0
        self._timings = timings
        self._mono_start: float = 0.0

    def __enter__(self) -> StageTimer:
        self.start_time = datetime.now(UTC)
        self._mono_start = time.monotonic()
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.duration_seconds = time.monotonic() - self._mono_start
        self.end_time = datetime.now(UTC)
        if self._timings is None:
            return
        if exc_type is not None:
            self._timings[f"_{self.stage_name}_failed"] = self.duration_seconds
        else:
            self._timings[self.stage_name] = self.duration_seconds


def failed_stage(timings: dict[str, float], default: str = "init") -> str:
    """Return the name of the stage that raised, based on recorded timings."""
    for key in reversed(list(timings)):
        if key.startswith("_") and key.endswith("_failed"):
            return key[1 : -len("_failed")]
    return default


def log_run_metrics(metrics: RunMetrics) -> None:
    """Emit run metrics as a single INFO record with a ``metrics`` extra field.

    Args:
        metrics: Populated RunMetrics dataclass.
    """
    logger.info(
        "Run %s for job %s in %.1fs",
        metrics.status,
        metrics.job_name,
        metrics.wall_time_seconds,
        extra={"job_name": metrics.job_name, "metrics": asdict(metrics)},
    )
