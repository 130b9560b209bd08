"""
S3 client for artifact bucket operations.

Stores uploaded source photos and transformed figurine images, and turns
stored keys into resolvable presigned URLs for clients and external services.

Dependencies: boto3
System role: Artifact storage boundary
"""

from datetime import datetime, timedelta, timezone

import boto3
from botocore.exceptions import ClientError

from gofigure.core.exceptions import StorageError


def source_image_key(job_id: str, extension: str = "png") -> str:
    """S3 key for a job's uploaded photo."""
    return f"submissions/{job_id}/source.{extension}"


def result_image_key(job_id: str) -> str:
    """S3 key for a job's transformed figurine image."""
    return f"submissions/{job_id}/result.png"


class S3ArtifactClient:
    """S3 client for the artifact bucket. All methods are blocking."""

    def __init__(self, bucket: str, region: str = "eu-central-1", s3_client=None) -> None:
        """
        Initialize S3 client for the artifact bucket.

        Args:
            bucket: S3 bucket name for artifact storage
            region: AWS region for S3 bucket
            s3_client: Pre-built boto3 client (tests inject stubs here)
        """
        self._bucket = bucket
        self._region = region
        self._s3_client = s3_client or boto3.client("s3", region_name=region)

    def upload_bytes(self, s3_key: str, data: bytes, content_type: str) -> str:
        """
        Store an object.

        Args:
            s3_key: S3 object key
            data: Object body
            content_type: MIME type stored with the object

        Returns:
            str: The key, usable as a stored artifact reference

        Raises:
            StorageError: If the upload fails
        """
        try:
            self._s3_client.put_object(
                Bucket=self._bucket,
                Key=s3_key,
                Body=data,
                ContentType=content_type,
            )
        except ClientError as e:
            raise StorageError(f"Failed to upload {s3_key}: {e}", key=s3_key) from e
        return s3_key

    def generate_presigned_download_url(
        self,
        s3_key: str,
        expires_in: int = 3600,
    ) -> tuple[str, datetime]:
        """
        Generate presigned URL for downloading/viewing an S3 object.

        Args:
            s3_key: S3 object key (path in bucket)
            expires_in: URL expiry in seconds (default 1 hour)

        Returns:
            tuple[str, datetime]: (presigned_url, expires_at)

        Raises:
            ClientError: If presigned URL generation fails
        """
        presigned_url = self._s3_client.generate_presigned_url(
            ClientMethod="get_object",
            Params={
                "Bucket": self._bucket,
                "Key": s3_key,
            },
            ExpiresIn=expires_in,
        )
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        return presigned_url, expires_at

    def file_exists(self, s3_key: str) -> bool:
        """
        Check if a file exists in S3.

        Args:
            s3_key: S3 object key to check

        Returns:
            bool: True if file exists, False otherwise
        """
        try:
            self._s3_client.head_object(Bucket=self._bucket, Key=s3_key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise
