"""
Object store backend factory.
Selects the backend from the STORAGE_BACKEND setting.
"""

from functools import lru_cache

from modelcatalog.config import get_settings
from modelcatalog.storage.base import StorageBackend
from modelcatalog.storage.local import LocalStorageBackend
from modelcatalog.storage.s3 import S3StorageBackend
from modelcatalog.storage.azure import AzureStorageBackend

settings = get_settings()


@lru_cache
def get_storage_backend() -> StorageBackend:
    """
    Get the configured object store backend.

    Cached so every request shares one stateless client handle.

    Raises:
        ValueError: If unknown storage backend is configured
    """
    backend = settings.STORAGE_BACKEND.lower()

    if backend == "local":
        return LocalStorageBackend()
    elif backend == "s3":
        return S3StorageBackend()
    elif backend == "azure":
        return AzureStorageBackend()
    else:
        raise ValueError(f"Unknown storage backend: {backend}")


def get_storage() -> StorageBackend:
    """Dependency function for FastAPI."""
    return get_storage_backend()
