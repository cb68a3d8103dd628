"""Amazon S3 staging client.

Uploads the source media file (single put-object or multipart, per the
TransferPlan) with progress reporting, and deletes the temporary object once
the pipeline is done with it. Blocking boto3 calls run in worker threads so
the pipeline task yields during network I/O.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from media_transcriber.observability.progress import ProgressTracker
from media_transcriber.storage.transfer import ChunkedTransfer, TransferPlan, UploadSession
from media_transcriber.utils.errors import ConfigurationError, UploadError

logger = logging.getLogger(__name__)

ProgressFactory = Callable[[int, str], ProgressTracker]


@dataclass(frozen=True)
class ObjectLocation:
    """Where an uploaded object lives."""

    bucket: str
    key: str

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    def __str__(self) -> str:
        return self.uri


def _describe(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code", "Unknown")
        message = error.get("Message")
        return f"{code}: {message}" if message else code
    return str(exc)


class S3Client:
    """Uploads media to a staging bucket and removes it afterwards.

    Args:
        client: A boto3 S3 client (already authenticated).
        bucket: Name of the staging bucket.
        progress_factory: Callable ``(total_bytes, label) -> ProgressTracker``
            used for every upload (default: terminal progress on stderr).
    """

    def __init__(
        self,
        client: Any,
        bucket: str,
        progress_factory: ProgressFactory | None = None,
    ) -> None:
        if not bucket:
            raise ConfigurationError("S3 bucket name is required")
        self.bucket = bucket
        self._client = client
        self._progress_factory = progress_factory or ProgressTracker
        self._background_tasks: set[asyncio.Task[None]] = set()

    async def upload_file(
        self, source_path: str | Path, key: str, plan: TransferPlan
    ) -> ObjectLocation:
        """Upload ``source_path`` to ``key`` using the given transfer plan.

        Args:
            source_path: Local file to upload.
            key: Destination object key in the staging bucket.
            plan: SingleTransfer or ChunkedTransfer.

        Returns:
            ObjectLocation of the uploaded object.

        Raises:
            UploadError: On any local I/O or S3 failure.
        """
        path = Path(source_path)
        try:
            file_size = path.stat().st_size
        except OSError as exc:
            raise UploadError(f"Cannot read {path}: {exc}", key=key) from exc

        logger.info(
            "Uploading %s to s3://%s/%s (%s transfer, %d bytes)",
            path.name,
            self.bucket,
            key,
            plan.name,
            file_size,
        )
        if isinstance(plan, ChunkedTransfer):
            return await self._upload_chunked(path, key, file_size, plan.part_size)
        return await self._upload_single(path, key, file_size)

    async def delete_object(self, location: ObjectLocation) -> None:
        """Delete an uploaded object. Failures are logged, never raised."""
        try:
            await asyncio.to_thread(
                self._client.delete_object, Bucket=location.bucket, Key=location.key
            )
        except Exception as exc:
            logger.warning(
                "Failed to delete %s, please delete it manually: %s",
                location.uri,
                _describe(exc),
                extra={"object_uri": location.uri, "stage": "cleanup"},
            )
            return
        logger.info("Deleted temporary object %s", location.uri)

    async def wait_for_background_tasks(self) -> None:
        """Wait for any detached multipart aborts still in flight."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

    async def _upload_single(
        self, path: Path, key: str, file_size: int
    ) -> ObjectLocation:
        # An empty file yields an indeterminate tracker
        progress = self._progress_factory(file_size, path.name)
        try:
            data = path.read_bytes()
        except OSError as exc:
            progress.abandon()
            raise UploadError(f"Cannot read {path}: {exc}", key=key) from exc

        try:
            await asyncio.to_thread(
                self._client.put_object, Bucket=self.bucket, Key=key, Body=data
            )
        except asyncio.CancelledError:
            progress.abandon()
            raise
        except Exception as exc:
            progress.abandon()
            raise UploadError(
                f"Failed to upload file to S3: {_describe(exc)}", key=key
            ) from exc

        progress.advance(len(data))
        progress.finish()
        return ObjectLocation(self.bucket, key)

    async def _upload_chunked(
        self, path: Path, key: str, file_size: int, part_size: int
    ) -> ObjectLocation:
        progress = self._progress_factory(file_size, path.name)

        try:
            response = await asyncio.to_thread(
                self._client.create_multipart_upload, Bucket=self.bucket, Key=key
            )
        except asyncio.CancelledError:
            progress.abandon()
            raise
        except Exception as exc:
            progress.abandon()
            raise UploadError(
                f"Failed to create multipart upload: {_describe(exc)}", key=key
            ) from exc

        upload_id = response.get("UploadId")
        if not upload_id:
            progress.abandon()
            raise UploadError("No upload ID returned for multipart upload", key=key)

        session = UploadSession(key=key, upload_id=upload_id)
        logger.debug(
            "Started multipart upload for %s", key, extra={"upload_id": upload_id}
        )

        try:
            await self._send_parts(path, session, part_size, progress)
        except asyncio.CancelledError:
            # Abort before the cancellation propagates
            progress.abandon()
            await asyncio.shield(self._abort_multipart(session))
            raise
        except OSError as exc:
            progress.abandon()
            self._spawn_abort(session)
            raise UploadError(f"Cannot read {path}: {exc}", key=key) from exc
        except UploadError:
            progress.abandon()
            self._spawn_abort(session)
            raise
        except Exception as exc:
            progress.abandon()
            self._spawn_abort(session)
            raise UploadError(
                f"Failed to upload part {session.next_part_number}: {exc}", key=key
            ) from exc

        if not session.parts:
            progress.abandon()
            await self._abort_multipart(session)
            raise UploadError("No parts were successfully uploaded", key=key)

        try:
            await asyncio.to_thread(
                self._client.complete_multipart_upload,
                Bucket=self.bucket,
                Key=key,
                UploadId=session.upload_id,
                MultipartUpload=session.as_multipart_upload(),
            )
        except asyncio.CancelledError:
            progress.abandon()
            await asyncio.shield(self._abort_multipart(session))
            raise
        except Exception as exc:
            progress.abandon()
            await self._abort_multipart(session)
            raise UploadError(
                f"Failed to complete multipart upload: {_describe(exc)}", key=key
            ) from exc

        progress.finish()
        logger.debug(
            "Completed multipart upload of %d parts for %s", len(session.parts), key
        )
        return ObjectLocation(self.bucket, key)

    async def _send_parts(
        self,
        path: Path,
        session: UploadSession,
        part_size: int,
        progress: ProgressTracker,
    ) -> None:
        with path.open("rb") as source:
            while True:
                chunk = source.read(part_size)
                if not chunk:
                    break
                part_number = session.next_part_number
                try:
                    response = await asyncio.to_thread(
                        self._client.upload_part,
                        Bucket=self.bucket,
                        Key=session.key,
                        UploadId=session.upload_id,
                        PartNumber=part_number,
                        Body=chunk,
                    )
                except (ClientError, BotoCoreError) as exc:
                    raise UploadError(
                        f"Failed to upload part {part_number}: {_describe(exc)}",
                        key=session.key,
                    ) from exc
                session.record_part(part_number, response.get("ETag"), len(chunk))
                progress.advance(len(chunk))

    def _spawn_abort(self, session: UploadSession) -> None:
        """Abort the multipart session in the background without awaiting it."""
        task = asyncio.create_task(
            self._abort_multipart(session), name=f"abort-{session.upload_id}"
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _abort_multipart(self, session: UploadSession) -> None:
        try:
            await asyncio.to_thread(
                self._client.abort_multipart_upload,
                Bucket=self.bucket,
                Key=session.key,
                UploadId=session.upload_id,
            )
        except Exception as exc:
            logger.warning(
                "Failed to abort multipart upload %s for %s: %s",
                session.upload_id,
                session.key,
                _describe(exc),
                extra={"upload_id": session.upload_id},
            )
            return
        logger.info(
            "Aborted multipart upload for %s",
            session.key,
            extra={"upload_id": session.upload_id},
        )
