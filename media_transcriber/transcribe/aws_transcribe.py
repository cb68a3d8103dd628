"""Amazon Transcribe job client.

Starts a batch transcription job for an object already staged in S3, polls
its status with capped exponential backoff, and downloads the resulting
transcript JSON over HTTPS.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from botocore.exceptions import BotoCoreError, ClientError

from media_transcriber.config import DEFAULT_LANGUAGE_CODE, PollConfig
from media_transcriber.transcribe.models import (
    UNKNOWN_FAILURE_REASON,
    Completed,
    Failed,
    JobState,
    TranscriptionStatus,
)
from media_transcriber.utils.errors import (
    PollError,
    PollTimeoutError,
    ResultFetchError,
    SubmissionError,
)
from media_transcriber.utils.retry import backoff_intervals, retry_with_backoff

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 60.0


def _service_message(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        return error.get("Message") or error.get("Code", "Unknown")
    return str(exc)


class TranscribeClient:
    """Drives one Amazon Transcribe batch job from submission to transcript.

    Args:
        client: A boto3 ``transcribe`` client (already authenticated).
        poll_config: Backoff schedule for status polling.
        language_code: Language of the media (default en-US).
        http_client: Optional shared AsyncClient for transcript downloads;
            a short-lived client is created per download when omitted.
    """

    def __init__(
        self,
        client: Any,
        poll_config: PollConfig | None = None,
        language_code: str = DEFAULT_LANGUAGE_CODE,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not language_code:
            raise ValueError("language_code is required")
        self._client = client
        self._poll_config = poll_config or PollConfig()
        self.language_code = language_code
        self._http_client = http_client

    async def submit_job(self, job_name: str, media_uri: str) -> None:
        """Start a transcription job for ``media_uri`` (an ``s3://`` URI).

        Single attempt; the caller decides whether to retry.

        Raises:
            SubmissionError: If the service rejects the request.
        """
        try:
            await asyncio.to_thread(
                self._client.start_transcription_job,
                TranscriptionJobName=job_name,
                Media={"MediaFileUri": media_uri},
                LanguageCode=self.language_code,
            )
        except (ClientError, BotoCoreError) as exc:
            raise SubmissionError(
                f"Failed to start transcription job: {_service_message(exc)}",
                job_name=job_name,
            ) from exc

        logger.info(
            "Started transcription job %s (%s)",
            job_name,
            self.language_code,
            extra={"job_name": job_name},
        )

    async def poll_until_complete(self, job_name: str) -> TranscriptionStatus:
        """Poll job status until it completes, fails, or attempts run out.

        Returns:
            Completed(result_uri) or Failed(reason). A failed job is a normal
            return value, not an exception.

        Raises:
            PollError: If the status query fails, the job is missing, the
                status is unrecognised, or a completed job has no transcript URI.
            PollTimeoutError: If max_attempts checks pass without a terminal state.
        """
        config = self._poll_config
        intervals = backoff_intervals(config.initial_interval, config.max_interval)
        state = JobState.CHECKING

        for attempt in range(1, config.max_attempts + 1):
            logger.debug(
                "Checking status of %s (attempt %d/%d)",
                job_name,
                attempt,
                config.max_attempts,
                extra={"job_name": job_name, "attempt": attempt},
            )
            job = await self._get_job(job_name)
            status = job.get("TranscriptionJobStatus")
            state = JobState.from_service(status)

            if state is JobState.COMPLETED:
                result_uri = (job.get("Transcript") or {}).get("TranscriptFileUri")
                if not result_uri:
                    raise PollError(
                        "Job completed but no transcript URI found", job_name=job_name
                    )
                logger.info("Transcription job %s completed", job_name)
                return Completed(result_uri)

            if state is JobState.FAILED:
                reason = job.get("FailureReason") or UNKNOWN_FAILURE_REASON
                logger.warning("Transcription job %s failed: %s", job_name, reason)
                return Failed(reason)

            if state is None:
                raise PollError(f"Unknown job status: {status!r}", job_name=job_name)

            if attempt < config.max_attempts:
                delay = next(intervals)
                logger.info(
                    "Job %s still in progress, checking again in %.0fs",
                    job_name,
                    delay,
                    extra={"job_name": job_name, "attempt": attempt},
                )
                await asyncio.sleep(delay)

        logger.warning(
            "Job %s is %s (last state: %s)",
            job_name,
            JobState.TIMED_OUT.value,
            state.value if state else "unknown",
        )
        raise PollTimeoutError(
            f"Transcription job timed out after {config.max_attempts} status checks",
            job_name=job_name,
            attempts=config.max_attempts,
        )

    async def fetch_transcript(self, result_uri: str, job_name: str | None = None) -> str:
        """Download the transcript artifact and return its plain text.

        Raises:
            ResultFetchError: On transport failure, non-success status,
                unparsable JSON, missing transcript entry, or empty text.
        """
        if self._http_client is not None:
            return await self._fetch_transcript(self._http_client, result_uri, job_name)
        async with httpx.AsyncClient(
            timeout=FETCH_TIMEOUT_SECONDS, follow_redirects=True
        ) as client:
            return await self._fetch_transcript(client, result_uri, job_name)

    async def _get_job(self, job_name: str) -> dict[str, Any]:
        try:
            response = await asyncio.to_thread(
                self._client.get_transcription_job, TranscriptionJobName=job_name
            )
        except (ClientError, BotoCoreError) as exc:
            raise PollError(
                f"Failed to get job status: {_service_message(exc)}", job_name=job_name
            ) from exc

        job = response.get("TranscriptionJob")
        if not job:
            raise PollError("Job not found", job_name=job_name)
        return job

    async def _fetch_transcript(
        self, client: httpx.AsyncClient, result_uri: str, job_name: str | None
    ) -> str:
        try:
            response = await _download(client, result_uri)
        except httpx.HTTPError as exc:
            raise ResultFetchError(
                f"Failed to fetch transcription results: {exc}", job_name=job_name
            ) from exc

        if not response.is_success:
            raise ResultFetchError(
                f"Failed to fetch transcription results: HTTP {response.status_code}",
                job_name=job_name,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ResultFetchError(
                f"Failed to parse transcription JSON: {exc}", job_name=job_name
            ) from exc

        text = extract_transcript_text(payload, job_name=job_name)
        logger.info("Retrieved transcript (%d characters)", len(text))
        return text


def extract_transcript_text(payload: Any, job_name: str | None = None) -> str:
    """Pull ``results.transcripts[0].transcript`` out of a Transcribe result.

    Raises:
        ResultFetchError: If the path is missing or the text is blank.
    """
    try:
        text = payload["results"]["transcripts"][0]["transcript"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ResultFetchError(
            "No transcript text found in results", job_name=job_name
        ) from exc

    if not isinstance(text, str):
        raise ResultFetchError("No transcript text found in results", job_name=job_name)
    if not text.strip():
        raise ResultFetchError("Transcription result is empty", job_name=job_name)
    return text


@retry_with_backoff(
    max_retries=2,
    base_delay=1.0,
    retryable_exceptions=(httpx.TransportError,),
)
async def _download(client: httpx.AsyncClient, url: str) -> httpx.Response:
    """GET the transcript artifact with retry on connection-level failures."""
    return await client.get(url)
