"""Custom exception hierarchy for the transcription pipeline.

All exceptions inherit from TranscriberError, enabling targeted handling
at the CLI boundary while preserving specific failure context. Each class
carries a short, actionable ``hint`` shown to the user alongside the message.
"""


class TranscriberError(Exception):
    """Base exception for all transcription pipeline errors."""

    hint = "Re-run with --verbose for more detail."

    def __init__(self, message: str, job_name: str | None = None) -> None:
        self.job_name = job_name
        super().__init__(message)

    def __str__(self) -> str:
        if self.job_name:
            return f"[job={self.job_name}] {super().__str__()}"
        return super().__str__()


class ConfigurationError(TranscriberError):
    """Raised when settings or environment overrides are invalid."""

    hint = "Please check the TRANSCRIBER_* environment variables."


class FileValidationError(TranscriberError):
    """Raised when the input media file fails validation."""

    hint = "Please verify the file path and permissions."

    def __init__(
        self, message: str, job_name: str | None = None, path: str | None = None
    ) -> None:
        self.path = path
        super().__init__(message, job_name)


class ClientInitError(TranscriberError):
    """Raised when AWS clients cannot be created or authenticated."""

    hint = "Please check your AWS credentials and configuration."


class UploadError(TranscriberError):
    """Raised when transferring the media file to S3 fails."""

    hint = "Please verify the S3 bucket exists and you have access to it."

    def __init__(
        self, message: str, job_name: str | None = None, key: str | None = None
    ) -> None:
        self.key = key
        super().__init__(message, job_name)


class SubmissionError(TranscriberError):
    """Raised when Amazon Transcribe rejects a start-job request."""

    hint = "Please check the Amazon Transcribe service status and your permissions."


class PollError(TranscriberError):
    """Raised when querying job status fails or returns an invalid state."""

    hint = "Please check the Amazon Transcribe service status and your permissions."


class JobFailedError(TranscriberError):
    """Raised when the transcription job itself reports failure."""

    hint = "Please check that the file contains audible speech in a supported format."

    def __init__(
        self, message: str, job_name: str | None = None, reason: str | None = None
    ) -> None:
        self.reason = reason
        super().__init__(message, job_name)


class PollTimeoutError(TranscriberError):
    """Raised when polling exhausts its attempts without a terminal state."""

    hint = "The job may still be running; check it in the Amazon Transcribe console."

    def __init__(
        self, message: str, job_name: str | None = None, attempts: int | None = None
    ) -> None:
        self.attempts = attempts
        super().__init__(message, job_name)


class ResultFetchError(TranscriberError):
    """Raised when downloading or parsing the transcript artifact fails."""

    hint = "Please check the Amazon Transcribe service status and your permissions."


class OutputWriteError(TranscriberError):
    """Raised when the transcript cannot be written to disk."""

    hint = "Please check file permissions and disk space."

    def __init__(
        self, message: str, job_name: str | None = None, path: str | None = None
    ) -> None:
        self.path = path
        super().__init__(message, job_name)
