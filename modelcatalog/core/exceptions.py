"""
Custom exceptions for the 3D Model Catalog API.
Every error surfaced to a caller is rendered as {"error", "message", "details"}.
"""

from typing import Any


class CatalogAPIException(Exception):
    """Base exception for all catalog API errors."""

    def __init__(
        self,
        error: str,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        self.error = error
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to response dictionary."""
        response = {
            "error": self.error,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response


class ValidationException(CatalogAPIException):
    """400 - Malformed request."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            error="validation_failed",
            message=message,
            status_code=400,
            details=details,
        )


class UnauthorizedException(CatalogAPIException):
    """401 - Missing or invalid token."""

    def __init__(self, message: str = "Valid token required"):
        super().__init__(
            error="unauthorized",
            message=message,
            status_code=401,
        )


class AuthorizationError(CatalogAPIException):
    """403 - Valid identity, but not the owner of the record."""

    def __init__(self, message: str = "Not authorized", details: dict[str, Any] | None = None):
        super().__init__(
            error="forbidden",
            message=message,
            status_code=403,
            details=details,
        )


class NotFoundError(CatalogAPIException):
    """404 - Model record not found."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(
            error="not_found",
            message=f"Model with ID '{record_id}' not found",
            status_code=404,
        )


class PayloadTooLargeException(CatalogAPIException):
    """413 - Upload size exceeds limit."""

    def __init__(self, max_size: int):
        max_size_mb = max_size / (1024 * 1024)
        super().__init__(
            error="payload_too_large",
            message=f"Maximum upload size exceeded ({max_size_mb:.0f}MB limit)",
            status_code=413,
        )


class PersistenceError(CatalogAPIException):
    """500 - Metadata store read or write failed."""

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        self.cause = cause
        super().__init__(
            error="persistence_error",
            message=f"Metadata store {operation} failed",
            status_code=500,
            details={"operation": operation, "cause": str(cause)},
        )


class StorageException(CatalogAPIException):
    """500 - Object store error."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            error="storage_error",
            message=message,
            status_code=500,
            details=details,
        )


class ReclamationFailure(StorageException):
    """
    Object store delete failed while reclaiming an asset key.

    Raised per key inside the lifecycle orchestrator, which logs it and
    carries on; it is never the primary result of an operation.
    """

    def __init__(self, key: str, cause: BaseException):
        self.key = key
        self.cause = cause
        super().__init__(
            message=f"Failed to reclaim asset '{key}': {cause}",
            details={"key": key, "cause": str(cause)},
        )
        self.error = "reclamation_failed"
