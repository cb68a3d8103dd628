"""Transfer strategy selection and multipart session bookkeeping.

determine_transfer_plan() maps a file size to a TransferPlan: a single
put-object request below the multipart threshold, fixed-size parts at or
above it. UploadSession records the parts of one multipart upload.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from media_transcriber.config import UploadConfig
from media_transcriber.utils.errors import UploadError


@dataclass(frozen=True)
class SingleTransfer:
    """Upload the whole file with one request."""

    name = "single"


@dataclass(frozen=True)
class ChunkedTransfer:
    """Upload the file as consecutive parts of ``part_size`` bytes.

    The final part may be shorter than ``part_size``.
    """

    part_size: int
    name = "chunked"

    def __post_init__(self) -> None:
        if self.part_size <= 0:
            raise ValueError("part_size must be positive")

    def part_count(self, file_size: int) -> int:
        return math.ceil(file_size / self.part_size)


TransferPlan = SingleTransfer | ChunkedTransfer


def determine_transfer_plan(
    file_size: int, config: UploadConfig | None = None
) -> TransferPlan:
    """Choose how to upload a file of ``file_size`` bytes.

    Args:
        file_size: Size of the source file in bytes.
        config: Threshold and part size (defaults: 50 MiB / 8 MiB).

    Returns:
        ChunkedTransfer when file_size >= multipart_threshold, else SingleTransfer.
    """
    config = config or UploadConfig()
    if file_size >= config.multipart_threshold:
        return ChunkedTransfer(part_size=config.part_size)
    return SingleTransfer()


@dataclass(frozen=True)
class CompletedPart:
    """A part accepted by S3, identified by its number and ETag."""

    part_number: int
    etag: str


@dataclass
class UploadSession:
    """State of one in-flight multipart upload.

    Part numbers are contiguous from 1 and every recorded part carries a
    non-empty ETag; ``offset`` is the number of source bytes sent so far.
    """

    key: str
    upload_id: str
    parts: list[CompletedPart] = field(default_factory=list)
    offset: int = 0

    @property
    def next_part_number(self) -> int:
        return len(self.parts) + 1

    def record_part(self, part_number: int, etag: str | None, size: int) -> None:
        """Append a completed part.

        Raises:
            UploadError: If the part number breaks the sequence or the ETag is missing.
        """
        if part_number != self.next_part_number:
            raise UploadError(
                f"Out-of-order part {part_number}, expected {self.next_part_number}",
                key=self.key,
            )
        if not etag:
            raise UploadError(f"No ETag returned for part {part_number}", key=self.key)
        self.parts.append(CompletedPart(part_number=part_number, etag=etag))
        self.offset += size

    def as_multipart_upload(self) -> dict[str, list[dict[str, object]]]:
        """Build the ``MultipartUpload`` argument for complete_multipart_upload."""
        return {
            "Parts": [
                {"PartNumber": part.part_number, "ETag": part.etag}
                for part in self.parts
            ]
        }
