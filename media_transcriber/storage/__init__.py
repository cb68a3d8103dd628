"""Object storage staging for media files.

Public API:
    S3Client               : Uploads media to S3 and deletes it afterwards.
    ObjectLocation         : Bucket and key of an uploaded object.
    determine_transfer_plan: Chooses single or chunked transfer by file size.
    SingleTransfer         : One put-object request.
    ChunkedTransfer        : Multipart upload with a fixed part size.
"""

from media_transcriber.storage.s3_client import ObjectLocation, S3Client
from media_transcriber.storage.transfer import (
    ChunkedTransfer,
    SingleTransfer,
    determine_transfer_plan,
)

__all__ = [
    "S3Client",
    "ObjectLocation",
    "determine_transfer_plan",
    "SingleTransfer",
    "ChunkedTransfer",
]
