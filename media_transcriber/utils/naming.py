"""Identifier generation for S3 object keys and transcription job names.

Both identifiers embed a second-resolution unix timestamp plus the source
file name, which keeps successive runs on the same file from colliding.
"""

from __future__ import annotations

import re
import time
from pathlib import Path

DEFAULT_KEY_PREFIX = "transcribe-temp"
DEFAULT_JOB_PREFIX = "transcribe-job"

# Amazon Transcribe job names: ^[0-9a-zA-Z._-]+, at most 200 characters
_JOB_NAME_UNSAFE = re.compile(r"[^0-9A-Za-z._-]+")
MAX_JOB_NAME_LENGTH = 200


def _timestamp(now: float | None) -> int:
    return int(time.time() if now is None else now)


def _sanitize_job_component(value: str, fallback: str) -> str:
    clean = _JOB_NAME_UNSAFE.sub("_", value.strip()).strip("._")
    return clean or fallback


def generate_object_key(
    source_path: str | Path,
    prefix: str = DEFAULT_KEY_PREFIX,
    now: float | None = None,
) -> str:
    """Build the temporary S3 key: ``<prefix>/<unix-ts>-<filename>``."""
    filename = Path(source_path).name or "unknown"
    return f"{prefix.rstrip('/')}/{_timestamp(now)}-{filename}"


def generate_job_name(
    source_path: str | Path,
    prefix: str = DEFAULT_JOB_PREFIX,
    now: float | None = None,
) -> str:
    """Build a job name: ``<prefix>-<unix-ts>-<filename-stem>``.

    Prefix and stem are reduced to the characters Amazon Transcribe accepts
    and the whole name is truncated to the service's length limit.
    """
    prefix = _sanitize_job_component(prefix, DEFAULT_JOB_PREFIX)
    stem = _sanitize_job_component(Path(source_path).stem, "unknown")
    name = f"{prefix}-{_timestamp(now)}-{stem}"
    return name[:MAX_JOB_NAME_LENGTH]
