"""
Local filesystem object store.
Stores assets on the local filesystem for development and simple deployments.
"""

from pathlib import Path
from typing import AsyncGenerator

import aiofiles
import aiofiles.os

from modelcatalog.config import get_settings
from modelcatalog.core.exceptions import StorageException
from modelcatalog.storage.base import StorageBackend

settings = get_settings()


class LocalStorageBackend(StorageBackend):
    """
    Local filesystem implementation.

    Objects are stored under LOCAL_STORAGE_PATH, one file per key.
    """

    def __init__(self, base_path: str | None = None):
        self.base_path = Path(base_path or settings.LOCAL_STORAGE_PATH)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _get_full_path(self, key: str) -> Path:
        """Map a key to a filesystem path, refusing keys that escape the base directory."""
        full_path = (self.base_path / key).resolve()
        if not full_path.is_relative_to(self.base_path.resolve()):
            raise StorageException(
                message="Invalid storage key",
                details={"key": key},
            )
        return full_path

    async def upload_bytes(self, data: bytes, key: str, content_type: str) -> str:
        """Store raw bytes under a key."""
        full_path = self._get_full_path(key)

        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)

            async with aiofiles.open(full_path, "wb") as f:
                await f.write(data)

            return key

        except Exception as e:
            raise StorageException(
                message=f"Failed to upload bytes: {str(e)}",
                details={"key": key},
            )

    async def download(self, key: str) -> AsyncGenerator[bytes, None]:
        """Stream download an object in chunks."""
        full_path = self._get_full_path(key)

        if not full_path.exists():
            raise StorageException(
                message=f"File not found: {key}",
                details={"key": key},
            )

        try:
            async with aiofiles.open(full_path, "rb") as f:
                while chunk := await f.read(1024 * 1024):  # 1MB chunks
                    yield chunk

        except Exception as e:
            raise StorageException(
                message=f"Failed to download file: {str(e)}",
                details={"key": key},
            )

    async def delete(self, key: str) -> bool:
        """Delete an object; a missing key returns False."""
        full_path = self._get_full_path(key)

        if not full_path.exists():
            return False

        try:
            await aiofiles.os.remove(full_path)

            # Try to remove empty parent directories
            base = self.base_path.resolve()
            parent = full_path.parent
            while parent != base:
                try:
                    parent.rmdir()  # Only removes if empty
                    parent = parent.parent
                except OSError:
                    break

            return True

        except Exception as e:
            raise StorageException(
                message=f"Failed to delete file: {str(e)}",
                details={"key": key},
            )

    async def exists(self, key: str) -> bool:
        """Check if an object exists."""
        return self._get_full_path(key).exists()

    def get_url(self, key: str) -> str:
        """For local storage, the files route serves the key directly."""
        return f"{settings.API_V1_PREFIX}/files/{key}"
