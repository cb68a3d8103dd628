"""Tests for media_transcriber.observability.metrics module."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict

import pytest

from media_transcriber.observability.logger import StructuredJsonFormatter
from media_transcriber.observability.metrics import (
    RunMetrics,
    StageTimer,
    failed_stage,
    log_run_metrics,
)


def _make_run_metrics(**overrides) -> RunMetrics:
    """Create a RunMetrics with sensible defaults, applying any overrides."""
    defaults = {
        "job_name": "transcribe-job-1700000000-clip",
        "status": "completed",
        "file_size_bytes": 10_485_760,
        "transfer_plan": "single",
        "wall_time_seconds": 42.5,
        "stage_timings": {"upload": 1.5, "submit": 0.2, "poll": 40.0},
        "error_stage": None,
        "error_message": None,
    }
    defaults.update(overrides)
    return RunMetrics(**defaults)


class TestRunMetrics:
    """Tests for RunMetrics dataclass."""

    def test_serializes_all_fields_to_dict(self):
        data = asdict(_make_run_metrics())
        assert data["job_name"] == "transcribe-job-1700000000-clip"
        assert data["transfer_plan"] == "single"
        assert data["stage_timings"]["poll"] == 40.0
        assert data["error_stage"] is None

    def test_failed_run_carries_error(self):
        metrics = _make_run_metrics(
            status="failed", error_stage="poll", error_message="timed out"
        )
        assert asdict(metrics)["error_stage"] == "poll"


class TestStageTimer:
    """Tests for StageTimer context manager."""

    def test_measures_duration(self):
        with StageTimer("upload") as timer:
            time.sleep(0.01)
        assert timer.duration_seconds >= 0.01
        assert timer.start_time is not None
        assert timer.end_time >= timer.start_time

    def test_records_into_timings(self):
        timings: dict[str, float] = {}
        with StageTimer("submit", timings):
            pass
        assert list(timings) == ["submit"]

    def test_failed_stage_recorded_separately(self):
        timings: dict[str, float] = {}
        with pytest.raises(RuntimeError):
            with StageTimer("poll", timings):
                raise RuntimeError("boom")
        assert "poll" not in timings
        assert "_poll_failed" in timings


class TestFailedStage:
    """Tests for failed_stage()."""

    def test_returns_failing_stage(self):
        timings = {"upload": 1.0, "submit": 0.1, "_poll_failed": 5.0, "cleanup": 0.2}
        assert failed_stage(timings) == "poll"

    def test_default_when_nothing_failed(self):
        assert failed_stage({"upload": 1.0}) == "init"
        assert failed_stage({}, default="validate") == "validate"


class TestLogRunMetrics:
    """Tests for log_run_metrics()."""

    def test_emits_single_record_with_metrics_extra(self, caplog):
        with caplog.at_level(logging.INFO, logger="media_transcriber.observability.metrics"):
            log_run_metrics(_make_run_metrics())

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert "completed" in record.getMessage()
        assert record.job_name == "transcribe-job-1700000000-clip"
        assert record.metrics["file_size_bytes"] == 10_485_760

    def test_json_formatter_includes_metrics(self, caplog):
        with caplog.at_level(logging.INFO, logger="media_transcriber.observability.metrics"):
            log_run_metrics(_make_run_metrics(status="failed", error_stage="upload"))

        entry = json.loads(StructuredJsonFormatter().format(caplog.records[0]))
        assert entry["severity"] == "INFO"
        assert entry["metrics"]["error_stage"] == "upload"
        assert entry["job_name"] == "transcribe-job-1700000000-clip"
