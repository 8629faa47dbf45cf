"""
Azure Blob Storage object store.
"""

from typing import AsyncGenerator

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings

from modelcatalog.config import get_settings
from modelcatalog.core.exceptions import StorageException
from modelcatalog.storage.base import StorageBackend

settings = get_settings()


class AzureStorageBackend(StorageBackend):
    """
    Azure Blob Storage implementation.

    Configured via AZURE_* environment variables.
    """

    def __init__(
        self,
        connection_string: str | None = None,
        container_name: str | None = None,
    ):
        self.connection_string = connection_string or settings.AZURE_STORAGE_CONNECTION_STRING
        self.container_name = container_name or settings.AZURE_CONTAINER_NAME

        if not self.connection_string:
            raise StorageException(
                message="Azure connection string not configured",
                details={"required": "AZURE_STORAGE_CONNECTION_STRING"},
            )

        self.blob_service_client = BlobServiceClient.from_connection_string(
            self.connection_string
        )
        self._ensure_container_exists()

    def _ensure_container_exists(self):
        """Create container if it doesn't exist."""
        try:
            container_client = self.blob_service_client.get_container_client(
                self.container_name
            )
            if not container_client.exists():
                container_client.create_container()
        except AzureError as e:
            raise StorageException(
                message=f"Failed to ensure container exists: {str(e)}",
                details={"container": self.container_name},
            )

    def _get_blob_client(self, key: str):
        return self.blob_service_client.get_blob_client(
            container=self.container_name,
            blob=key,
        )

    async def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        """Store raw bytes under a key."""
        try:
            blob_client = self._get_blob_client(key)
            blob_client.upload_blob(
                data,
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type),
            )
            return key

        except AzureError as e:
            raise StorageException(
                message=f"Failed to upload blob to Azure: {str(e)}",
                details={"key": key, "container": self.container_name},
            )

    async def download(self, key: str) -> AsyncGenerator[bytes, None]:
        """Stream download a blob in chunks."""
        try:
            blob_client = self._get_blob_client(key)
            stream = blob_client.download_blob()

            for chunk in stream.chunks():
                yield chunk

        except ResourceNotFoundError:
            raise StorageException(
                message=f"File not found: {key}",
                details={"key": key, "container": self.container_name},
            )
        except AzureError as e:
            raise StorageException(
                message=f"Failed to download blob from Azure: {str(e)}",
                details={"key": key, "container": self.container_name},
            )

    async def delete(self, key: str) -> bool:
        """Delete a blob; a missing key returns False."""
        try:
            blob_client = self._get_blob_client(key)
            blob_client.delete_blob()
            return True

        except ResourceNotFoundError:
            return False
        except AzureError as e:
            raise StorageException(
                message=f"Failed to delete blob from Azure: {str(e)}",
                details={"key": key, "container": self.container_name},
            )

    async def exists(self, key: str) -> bool:
        """Check if a blob exists."""
        try:
            return self._get_blob_client(key).exists()
        except AzureError as e:
            raise StorageException(
                message=f"Failed to check blob existence: {str(e)}",
                details={"key": key, "container": self.container_name},
            )

    def get_url(self, key: str) -> str:
        """Get URL for blob access."""
        return self._get_blob_client(key).url
