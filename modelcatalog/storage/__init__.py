"""
Object store abstraction for catalog assets.
Supports multiple backends: Local filesystem, S3/MinIO, Azure Blob.
"""

from modelcatalog.storage.base import StorageBackend, get_mime_type, EXTENSION_MIME_TYPES
from modelcatalog.storage.local import LocalStorageBackend
from modelcatalog.storage.s3 import S3StorageBackend
from modelcatalog.storage.azure import AzureStorageBackend
from modelcatalog.storage.factory import get_storage_backend, get_storage

__all__ = [
    "StorageBackend",
    "LocalStorageBackend",
    "S3StorageBackend",
    "AzureStorageBackend",
    "get_storage_backend",
    "get_storage",
    "get_mime_type",
    "EXTENSION_MIME_TYPES",
]
