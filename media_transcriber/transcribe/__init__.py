"""Amazon Transcribe job submission, polling and result retrieval."""

from media_transcriber.transcribe.aws_transcribe import (
    TranscribeClient,
    extract_transcript_text,
)
from media_transcriber.transcribe.models import (
    Completed,
    Failed,
    JobState,
    TranscriptionStatus,
)

__all__ = [
    "TranscribeClient",
    "extract_transcript_text",
    "Completed",
    "Failed",
    "JobState",
    "TranscriptionStatus",
]
