"""
Pydantic schemas for request/response validation.
"""

from modelcatalog.schemas.model_record import (
    AuthorProjection,
    FileUploadResponse,
    ModelFileRef,
    ModelRecordCreate,
    ModelRecordListResponse,
    ModelRecordResponse,
    ModelRecordUpdate,
    RecordFilter,
    StoredFileRef,
)
from modelcatalog.schemas.error import ErrorResponse

__all__ = [
    # Model record schemas
    "AuthorProjection",
    "FileUploadResponse",
    "ModelFileRef",
    "ModelRecordCreate",
    "ModelRecordListResponse",
    "ModelRecordResponse",
    "ModelRecordUpdate",
    "RecordFilter",
    "StoredFileRef",
    # Error schemas
    "ErrorResponse",
]
