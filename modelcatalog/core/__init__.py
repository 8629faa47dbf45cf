"""Core utilities and exceptions for the 3D Model Catalog API."""

from modelcatalog.core.exceptions import (
    CatalogAPIException,
    NotFoundError,
    AuthorizationError,
    PersistenceError,
    ReclamationFailure,
    StorageException,
    ValidationException,
    UnauthorizedException,
    PayloadTooLargeException,
)

__all__ = [
    "CatalogAPIException",
    "NotFoundError",
    "AuthorizationError",
    "PersistenceError",
    "ReclamationFailure",
    "StorageException",
    "ValidationException",
    "UnauthorizedException",
    "PayloadTooLargeException",
]
