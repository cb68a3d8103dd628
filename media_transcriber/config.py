"""Runtime configuration for the transcription pipeline.

Named configuration values are grouped per component and passed into each
component's constructor. Defaults match the documented behaviour; every value
can be overridden through TRANSCRIBER_* environment variables via
Settings.from_env().
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TypeVar

from media_transcriber.utils.errors import ConfigurationError
from media_transcriber.utils.naming import DEFAULT_JOB_PREFIX, DEFAULT_KEY_PREFIX

MIB = 1024 * 1024

MULTIPART_THRESHOLD_BYTES = 50 * MIB
PART_SIZE_BYTES = 8 * MIB
# S3 rejects non-final multipart parts smaller than 5 MiB
S3_MIN_PART_SIZE_BYTES = 5 * MIB

POLL_INITIAL_INTERVAL_SECONDS = 5.0
POLL_MAX_INTERVAL_SECONDS = 30.0
POLL_MAX_ATTEMPTS = 120

MAX_FILE_SIZE_BYTES = 2 * 1024 * MIB
SUPPORTED_EXTENSIONS: tuple[str, ...] = (
    "mp4",
    "mov",
    "avi",
    "flv",
    "mp3",
    "wav",
    "flac",
    "m4a",
    "webm",
    "mkv",
)

DEFAULT_LANGUAGE_CODE = "en-US"

T = TypeVar("T")


@dataclass(frozen=True)
class UploadConfig:
    """Transfer strategy and object naming settings."""

    multipart_threshold: int = MULTIPART_THRESHOLD_BYTES
    part_size: int = PART_SIZE_BYTES
    key_prefix: str = DEFAULT_KEY_PREFIX

    def __post_init__(self) -> None:
        if self.multipart_threshold <= 0:
            raise ConfigurationError("multipart_threshold must be positive")
        if self.part_size < S3_MIN_PART_SIZE_BYTES:
            raise ConfigurationError(
                f"part_size must be at least {S3_MIN_PART_SIZE_BYTES} bytes "
                f"(got {self.part_size})"
            )
        if not self.key_prefix.strip("/"):
            raise ConfigurationError("key_prefix must not be empty")


@dataclass(frozen=True)
class PollConfig:
    """Backoff schedule for job status polling."""

    initial_interval: float = POLL_INITIAL_INTERVAL_SECONDS
    max_interval: float = POLL_MAX_INTERVAL_SECONDS
    max_attempts: int = POLL_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        if self.initial_interval <= 0 or self.max_interval <= 0:
            raise ConfigurationError("poll intervals must be positive")
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")


@dataclass(frozen=True)
class ValidationConfig:
    """Limits applied to the input media file before anything is uploaded."""

    supported_extensions: tuple[str, ...] = SUPPORTED_EXTENSIONS
    max_file_size: int = MAX_FILE_SIZE_BYTES


@dataclass(frozen=True)
class Settings:
    """Top-level settings for one transcription run."""

    upload: UploadConfig = field(default_factory=UploadConfig)
    poll: PollConfig = field(default_factory=PollConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    language_code: str = DEFAULT_LANGUAGE_CODE
    job_name_prefix: str = DEFAULT_JOB_PREFIX
    region_name: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables, falling back to defaults.

        Args:
            environ: Mapping to read from (defaults to os.environ).

        Raises:
            ConfigurationError: If a numeric override cannot be parsed or
                the resulting values are out of range.
        """
        env = os.environ if environ is None else environ

        upload = UploadConfig(
            multipart_threshold=_parse(
                env, "TRANSCRIBER_MULTIPART_THRESHOLD", int, MULTIPART_THRESHOLD_BYTES
            ),
            part_size=_parse(env, "TRANSCRIBER_PART_SIZE", int, PART_SIZE_BYTES),
            key_prefix=env.get("TRANSCRIBER_KEY_PREFIX", DEFAULT_KEY_PREFIX),
        )
        poll = PollConfig(
            initial_interval=_parse(
                env,
                "TRANSCRIBER_POLL_INITIAL_INTERVAL",
                float,
                POLL_INITIAL_INTERVAL_SECONDS,
            ),
            max_interval=_parse(
                env, "TRANSCRIBER_POLL_MAX_INTERVAL", float, POLL_MAX_INTERVAL_SECONDS
            ),
            max_attempts=_parse(
                env, "TRANSCRIBER_POLL_MAX_ATTEMPTS", int, POLL_MAX_ATTEMPTS
            ),
        )
        return cls(
            upload=upload,
            poll=poll,
            language_code=env.get("TRANSCRIBER_LANGUAGE_CODE", DEFAULT_LANGUAGE_CODE),
            job_name_prefix=env.get("TRANSCRIBER_JOB_PREFIX", DEFAULT_JOB_PREFIX),
            region_name=env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION"),
        )


def _parse(
    env: Mapping[str, str], name: str, convert: Callable[[str], T], default: T
) -> T:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return convert(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"Invalid value for {name}: {raw!r}") from exc
