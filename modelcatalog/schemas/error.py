"""
Pydantic schema for error responses.
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error response format.

    Examples:
        401: {"error": "unauthorized", "message": "Valid token required"}
        403: {"error": "forbidden", "message": "Not authorized", "details": {...}}
        404: {"error": "not_found", "message": "Model with ID '...' not found"}
        500: {"error": "persistence_error", "message": "...", "details": {"cause": "..."}}
    """

    error: str = Field(
        ...,
        description="Error code string",
        examples=["validation_failed", "unauthorized", "forbidden", "not_found", "persistence_error"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Optional additional error details",
    )
