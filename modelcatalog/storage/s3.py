"""
S3-compatible object store.
Supports AWS S3 and S3-compatible services like MinIO.
"""

from typing import AsyncGenerator

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from modelcatalog.config import get_settings
from modelcatalog.core.exceptions import StorageException
from modelcatalog.storage.base import StorageBackend

settings = get_settings()


class S3StorageBackend(StorageBackend):
    """
    S3-compatible object storage implementation.

    Configured via S3_* environment variables.
    """

    def __init__(
        self,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        bucket_name: str | None = None,
        region: str | None = None,
    ):
        self.endpoint_url = endpoint_url or settings.S3_ENDPOINT_URL
        self.access_key = access_key or settings.S3_ACCESS_KEY
        self.secret_key = secret_key or settings.S3_SECRET_KEY
        self.bucket_name = bucket_name or settings.S3_BUCKET_NAME
        self.region = region or settings.S3_REGION

        config = Config(
            signature_version="s3v4",
            retries={"max_attempts": 3, "mode": "standard"},
        )

        self.client = boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
            region_name=self.region,
            config=config,
        )

        self._ensure_bucket_exists()

    def _ensure_bucket_exists(self):
        """Create bucket if it doesn't exist."""
        try:
            self.client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code")
            if error_code == "404":
                try:
                    if self.region and self.region != "us-east-1":
                        self.client.create_bucket(
                            Bucket=self.bucket_name,
                            CreateBucketConfiguration={"LocationConstraint": self.region},
                        )
                    else:
                        self.client.create_bucket(Bucket=self.bucket_name)
                except ClientError as create_error:
                    raise StorageException(
                        message=f"Failed to create bucket: {str(create_error)}",
                        details={"bucket": self.bucket_name},
                    )

    async def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        """Store raw bytes under a key."""
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
            return key

        except (ClientError, BotoCoreError) as e:
            raise StorageException(
                message=f"Failed to upload object to S3: {str(e)}",
                details={"key": key, "bucket": self.bucket_name},
            )

    async def download(self, key: str) -> AsyncGenerator[bytes, None]:
        """Stream download an object in chunks."""
        try:
            response = self.client.get_object(
                Bucket=self.bucket_name,
                Key=key,
            )

            body = response["Body"]
            while chunk := body.read(1024 * 1024):  # 1MB chunks
                yield chunk
            body.close()

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code")
            if error_code == "NoSuchKey":
                raise StorageException(
                    message=f"File not found: {key}",
                    details={"key": key, "bucket": self.bucket_name},
                )
            raise StorageException(
                message=f"Failed to download object from S3: {str(e)}",
                details={"key": key, "bucket": self.bucket_name},
            )

    async def delete(self, key: str) -> bool:
        """Delete an object; a missing key returns False."""
        try:
            if not await self.exists(key):
                return False

            self.client.delete_object(
                Bucket=self.bucket_name,
                Key=key,
            )
            return True

        except (ClientError, BotoCoreError) as e:
            raise StorageException(
                message=f"Failed to delete object from S3: {str(e)}",
                details={"key": key, "bucket": self.bucket_name},
            )

    async def exists(self, key: str) -> bool:
        """Check if an object exists."""
        try:
            self.client.head_object(
                Bucket=self.bucket_name,
                Key=key,
            )
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code")
            if error_code == "404":
                return False
            raise StorageException(
                message=f"Failed to check object existence: {str(e)}",
                details={"key": key, "bucket": self.bucket_name},
            )

    def get_url(self, key: str) -> str:
        """Generate a presigned URL for object access."""
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": key,
                },
                ExpiresIn=3600,  # 1 hour
            )
        except ClientError:
            if self.endpoint_url:
                return f"{self.endpoint_url}/{self.bucket_name}/{key}"
            return f"s3://{self.bucket_name}/{key}"
