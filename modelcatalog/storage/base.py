"""
Abstract object store interface.
Assets are addressed by opaque keys; the catalog never inspects their contents.
"""

from abc import ABC, abstractmethod
from pathlib import PurePosixPath
from typing import AsyncGenerator


class StorageBackend(ABC):
    """
    Abstract base class for object store backends.

    All implementations (Local, S3, Azure) must implement these methods so
    the lifecycle orchestrator behaves identically on every backend.
    """

    @abstractmethod
    async def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        """
        Store raw bytes under a key.

        Args:
            data: Raw file bytes
            key: Destination key (e.g., "uploads/{user}/{uuid}-robot.glb")
            content_type: MIME type of the content

        Returns:
            The key the object was stored under

        Raises:
            StorageException: If upload fails
        """
        pass

    @abstractmethod
    async def download(self, key: str) -> AsyncGenerator[bytes, None]:
        """
        Stream an object from storage.

        Yields:
            Object content in chunks

        Raises:
            StorageException: If the key is missing or download fails
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete an object by key.

        Deleting a missing key is not an error.

        Returns:
            True if deleted, False if the key didn't exist

        Raises:
            StorageException: If deletion fails for other reasons
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if an object exists under a key."""
        pass

    @abstractmethod
    def get_url(self, key: str) -> str:
        """
        Get a URL for accessing the object.

        For local storage, this returns a relative path.
        For cloud storage, this may return a signed URL.
        """
        pass


# MIME type mapping for catalog assets (previews and model files)
EXTENSION_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "gif": "image/gif",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mov": "video/quicktime",
    "gltf": "model/gltf+json",
    "glb": "model/gltf-binary",
    "usdz": "model/vnd.usdz+zip",
    "obj": "model/obj",
    "stl": "model/stl",
    "ply": "application/x-ply",
    "fbx": "application/octet-stream",
    "blend": "application/octet-stream",
}


def get_mime_type(filename: str) -> str:
    """Get MIME type from a file name's extension."""
    extension = PurePosixPath(filename).suffix.lstrip(".").lower()
    return EXTENSION_MIME_TYPES.get(extension, "application/octet-stream")
