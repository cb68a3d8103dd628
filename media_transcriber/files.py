"""Local file checks and transcript output."""

from __future__ import annotations

import logging
from pathlib import Path

from media_transcriber.config import ValidationConfig
from media_transcriber.utils.errors import FileValidationError, OutputWriteError
from media_transcriber.utils.units import format_bytes

logger = logging.getLogger(__name__)


def validate_media_file(
    path: str | Path, config: ValidationConfig | None = None
) -> int:
    """Check that ``path`` is a non-empty, supported media file within limits.

    Args:
        path: Candidate input file.
        config: Allowed extensions and maximum size.

    Returns:
        The file size in bytes.

    Raises:
        FileValidationError: If any check fails.
    """
    config = config or ValidationConfig()
    path = Path(path)

    if not path.exists():
        raise FileValidationError(f"File does not exist: {path}", path=str(path))
    if not path.is_file():
        raise FileValidationError(f"Path is not a file: {path}", path=str(path))

    extension = path.suffix.lstrip(".")
    if not extension:
        raise FileValidationError("File has no extension", path=str(path))
    if extension.lower() not in config.supported_extensions:
        raise FileValidationError(
            f"Unsupported file format: {extension}. "
            f"Supported formats: {', '.join(config.supported_extensions)}",
            path=str(path),
        )

    file_size = path.stat().st_size
    if file_size > config.max_file_size:
        raise FileValidationError(
            f"File size ({format_bytes(file_size)}) exceeds maximum limit of "
            f"{format_bytes(config.max_file_size)}",
            path=str(path),
        )
    if file_size == 0:
        raise FileValidationError("File is empty", path=str(path))

    logger.info("File validation passed: %s (%s)", path, format_bytes(file_size))
    return file_size


def save_transcript(path: str | Path, text: str) -> Path:
    """Write the transcript as UTF-8, creating parent directories as needed.

    Raises:
        OutputWriteError: If the file cannot be written.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(
            f"Failed to save transcript to {path}: {exc}", path=str(path)
        ) from exc
    return path
