"""Main transcribe_file() orchestrator.

Orchestrates: upload -> submit job -> poll -> fetch transcript -> write
output -> delete the staged object. Once the upload has succeeded the staged
object is always deleted, whatever happens in later stages.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from media_transcriber.config import Settings
from media_transcriber.files import save_transcript
from media_transcriber.observability.metrics import (
    RunMetrics,
    StageTimer,
    failed_stage,
    log_run_metrics,
)
from media_transcriber.storage.s3_client import S3Client
from media_transcriber.storage.transfer import TransferPlan, determine_transfer_plan
from media_transcriber.transcribe.aws_transcribe import TranscribeClient
from media_transcriber.transcribe.models import Failed
from media_transcriber.utils.errors import (
    JobFailedError,
    OutputWriteError,
    TranscriberError,
    UploadError,
)
from media_transcriber.utils.naming import generate_job_name, generate_object_key

logger = logging.getLogger(__name__)


@dataclass
class TranscriptionResult:
    """Outcome of a successful transcription run."""

    job_name: str
    object_uri: str
    transcript: str
    output_path: str | None = None
    stage_timings: dict[str, float] = field(default_factory=dict)
    write_error: OutputWriteError | None = None


async def transcribe_file(
    source_path: str | Path,
    storage: S3Client,
    transcriber: TranscribeClient,
    settings: Settings | None = None,
    output_path: str | Path | None = None,
    now: float | None = None,
) -> TranscriptionResult:
    """Transcribe one local media file end to end.

    Args:
        source_path: Validated local media file.
        storage: S3 staging client bound to the target bucket.
        transcriber: Amazon Transcribe job client.
        settings: Transfer, naming and polling settings.
        output_path: Where to save the transcript (optional).
        now: Unix timestamp used for the object key and job name
            (defaults to the current time).

    Returns:
        TranscriptionResult with the transcript text and stage timings. If
        the transcript could not be saved, ``write_error`` holds the
        OutputWriteError and the text is still returned.

    Raises:
        TranscriberError: The first failure of any stage. A job that the
            service reports as failed surfaces as JobFailedError.
    """
    settings = settings or Settings()
    path = Path(source_path)
    timestamp = time.time() if now is None else now
    key = generate_object_key(path, settings.upload.key_prefix, timestamp)
    job_name = generate_job_name(path, settings.job_name_prefix, timestamp)

    wall_start = time.monotonic()
    stage_timings: dict[str, float] = {}
    file_size = 0
    plan_name = "unknown"

    try:
        try:
            file_size = path.stat().st_size
        except OSError as exc:
            raise UploadError(f"Cannot read {path}: {exc}", key=key) from exc
        plan = determine_transfer_plan(file_size, settings.upload)
        plan_name = plan.name

        result = await _run_pipeline(
            path=path,
            key=key,
            job_name=job_name,
            plan=plan,
            storage=storage,
            transcriber=transcriber,
            output_path=output_path,
            stage_timings=stage_timings,
        )

    except TranscriberError as exc:
        log_run_metrics(
            RunMetrics(
                job_name=job_name,
                status="failed",
                file_size_bytes=file_size,
                transfer_plan=plan_name,
                wall_time_seconds=time.monotonic() - wall_start,
                stage_timings=stage_timings,
                error_stage=failed_stage(stage_timings),
                error_message=str(exc),
            )
        )
        raise

    log_run_metrics(
        RunMetrics(
            job_name=job_name,
            status="completed",
            file_size_bytes=file_size,
            transfer_plan=plan_name,
            wall_time_seconds=time.monotonic() - wall_start,
            stage_timings=stage_timings,
            error_stage="write" if result.write_error else None,
            error_message=str(result.write_error) if result.write_error else None,
        )
    )
    return result


async def _run_pipeline(
    path: Path,
    key: str,
    job_name: str,
    plan: TransferPlan,
    storage: S3Client,
    transcriber: TranscribeClient,
    output_path: str | Path | None,
    stage_timings: dict[str, float],
) -> TranscriptionResult:
    """Execute the pipeline stages. Raises on failure."""
    with StageTimer("upload", stage_timings):
        location = await storage.upload_file(path, key, plan)
    logger.info("Staged %s at %s", path.name, location.uri)

    try:
        with StageTimer("submit", stage_timings):
            await transcriber.submit_job(job_name, location.uri)

        with StageTimer("poll", stage_timings):
            status = await transcriber.poll_until_complete(job_name)
            if isinstance(status, Failed):
                raise JobFailedError(
                    f"Transcription failed: {status.reason}",
                    job_name=job_name,
                    reason=status.reason,
                )

        with StageTimer("fetch", stage_timings):
            transcript = await transcriber.fetch_transcript(
                status.result_uri, job_name=job_name
            )

        saved_path: str | None = None
        write_error: OutputWriteError | None = None
        if output_path is not None:
            # The transcript is returned even when saving it fails
            try:
                with StageTimer("write", stage_timings):
                    saved_path = str(save_transcript(output_path, transcript))
            except OutputWriteError as exc:
                exc.job_name = job_name
                write_error = exc
                logger.warning(
                    "Could not save transcript: %s",
                    exc,
                    extra={"job_name": job_name, "stage": "write"},
                )
            else:
                logger.info("Saved transcript to %s", saved_path)

    finally:
        with StageTimer("cleanup", stage_timings):
            await storage.delete_object(location)

    return TranscriptionResult(
        job_name=job_name,
        object_uri=location.uri,
        transcript=transcript,
        output_path=saved_path,
        write_error=write_error,
        stage_timings=stage_timings,
    )
