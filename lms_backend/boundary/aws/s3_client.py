"""
S3 client for the course materials bucket.

Blob storage collaborator: writes uploaded files, issues time-limited
download URLs and removes objects. boto3 is synchronous, so every call
is moved off the event loop with ``run_in_threadpool``.

Dependencies: boto3, botocore, fastapi
System role: Blob storage for lecture notes and assignment submissions
"""

import logging
from datetime import datetime, timedelta, timezone

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from lms_backend.core.exceptions import UpstreamFailureError

logger = logging.getLogger(__name__)


class S3MaterialStore:
    """S3 client for material bucket operations (upload, sign, delete)."""

    def __init__(self, bucket: str, region: str = "ap-southeast-2", client=None) -> None:
        """
        Initialize S3 client for the materials bucket.

        Args:
            bucket: S3 bucket name for material storage
            region: AWS region for S3 bucket
            client: Optional preconfigured boto3 S3 client
        """
        self._bucket = bucket
        self._region = region
        self._s3_client = client or boto3.client("s3", region_name=region)

    async def upload(self, data: bytes, s3_key: str, content_type: str) -> str:
        """
        Write an object to the bucket.

        Args:
            data: File contents
            s3_key: S3 object key (path in bucket)
            content_type: MIME type stored with the object

        Returns:
            str: The key that was written

        Raises:
            UpstreamFailureError: If S3 rejects the write
        """
        try:
            await run_in_threadpool(
                self._s3_client.put_object,
                Bucket=self._bucket,
                Key=s3_key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "S3 upload failed",
                extra={"s3_key": s3_key, "error_type": type(e).__name__},
            )
            raise UpstreamFailureError("Failed to store file", operation="upload") from e

        logger.info("Stored object", extra={"s3_key": s3_key, "size_bytes": len(data)})
        return s3_key

    async def signed_url(self, s3_key: str, expires_in: int) -> tuple[str, datetime]:
        """
        Generate presigned URL for downloading an S3 object.

        Args:
            s3_key: S3 object key (path in bucket)
            expires_in: URL expiry in seconds

        Returns:
            tuple[str, datetime]: (presigned_url, expires_at)

        Raises:
            UpstreamFailureError: If presigned URL generation fails
        """
        try:
            presigned_url = await run_in_threadpool(
                self._s3_client.generate_presigned_url,
                ClientMethod="get_object",
                Params={
                    "Bucket": self._bucket,
                    "Key": s3_key,
                },
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "S3 presign failed",
                extra={"s3_key": s3_key, "error_type": type(e).__name__},
            )
            raise UpstreamFailureError(
                "Failed to generate download URL", operation="sign"
            ) from e

        expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        return presigned_url, expires_at

    async def delete(self, s3_key: str) -> None:
        """
        Delete an object from the bucket.

        Args:
            s3_key: S3 object key to delete

        Raises:
            UpstreamFailureError: If S3 rejects the delete
        """
        try:
            await run_in_threadpool(
                self._s3_client.delete_object,
                Bucket=self._bucket,
                Key=s3_key,
            )
        except (ClientError, BotoCoreError) as e:
            raise UpstreamFailureError("Failed to delete file", operation="delete") from e

