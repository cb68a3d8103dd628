"""AWS client bootstrap.

Builds the S3 and Transcribe clients from the default boto3 credential chain
and checks the credentials with a cheap S3 call before any work starts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from media_transcriber.utils.errors import ClientInitError

logger = logging.getLogger(__name__)


@dataclass
class AwsClients:
    """Authenticated service clients handed to the pipeline."""

    s3: Any
    transcribe: Any


def create_aws_clients(
    region_name: str | None = None, verify: bool = True
) -> AwsClients:
    """Create S3 and Transcribe clients sharing one boto3 session.

    Args:
        region_name: AWS region; None defers to the boto3 default chain.
        verify: Call ListBuckets to confirm the credentials work.

    Returns:
        AwsClients with ``s3`` and ``transcribe`` clients.

    Raises:
        ClientInitError: If the clients cannot be created or the
            credential check fails.
    """
    try:
        session = boto3.session.Session(region_name=region_name)
        s3 = session.client("s3")
        transcribe = session.client("transcribe")
    except (BotoCoreError, ClientError) as exc:
        raise ClientInitError(f"Failed to create AWS clients: {exc}") from exc

    if verify:
        try:
            s3.list_buckets()
        except (BotoCoreError, ClientError) as exc:
            raise ClientInitError(
                f"Failed to validate AWS credentials: {exc}"
            ) from exc
        logger.info(
            "AWS credentials validated (region %s)",
            session.region_name or "default",
        )

    return AwsClients(s3=s3, transcribe=transcribe)
