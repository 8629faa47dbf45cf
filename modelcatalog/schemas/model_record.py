"""
Pydantic schemas for model record request/response validation.
Wire names are camelCase; attribute names match the ORM columns.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_MODEL_FILES = 50


# ===================
# Shared Schemas
# ===================

class ModelFileRef(BaseModel):
    """Reference to one model file in the object store, plus display metadata."""

    key: str = Field(
        ...,
        min_length=1,
        max_length=512,
        description="Object store key",
        examples=["uploads/dev-user-001/1f0c-robot.glb"],
    )
    name: str | None = Field(
        default=None,
        max_length=255,
        description="Original file name shown to users",
    )
    size: int | None = Field(
        default=None,
        ge=0,
        description="File size in bytes",
    )

    model_config = ConfigDict(extra="forbid")


class StoredFileRef(BaseModel):
    """
    A model file entry as read back from the metadata store.

    Stored rows may predate the request schema, so unknown keys are kept
    and nothing is length-checked.
    """

    key: str | None = None

    model_config = ConfigDict(extra="allow")

    def normalized(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class AuthorProjection(BaseModel):
    """The only author fields ever attached to a record."""

    id: str
    username: str
    email: str | None = None

    model_config = ConfigDict(from_attributes=True)


def _blank_key_to_none(v: str | None) -> str | None:
    if v is not None and not v.strip():
        return None
    return v


# ===================
# Request Schemas
# ===================

class ModelRecordCreate(BaseModel):
    """Schema for creating a model record (POST /models)."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display title",
    )
    description: str = Field(
        default="",
        max_length=5000,
        description="Free-text description",
    )
    is_public: bool | None = Field(
        default=None,
        alias="isPublic",
        description="Visibility; omitted means public",
    )
    image_id: str | None = Field(
        default=None,
        max_length=512,
        alias="imageId",
        description="Key of an already-uploaded preview image",
    )
    video_id: str | None = Field(
        default=None,
        max_length=512,
        alias="videoId",
        description="Key of an already-uploaded preview video",
    )
    model_files: list[ModelFileRef] = Field(
        default_factory=list,
        max_length=MAX_MODEL_FILES,
        alias="modelFiles",
        description="Ordered model file references",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        protected_namespaces=(),
    )

    @field_validator("image_id", "video_id")
    @classmethod
    def blank_keys_are_absent(cls, v: str | None) -> str | None:
        return _blank_key_to_none(v)

    def asset_keys(self) -> list[str]:
        """Every asset key in the payload: image, video, then each file."""
        keys = [k for k in (self.image_id, self.video_id) if k]
        keys.extend(ref.key for ref in self.model_files)
        return keys

    def stored_model_files(self) -> list[dict[str, Any]]:
        return [ref.model_dump(exclude_none=True) for ref in self.model_files]


class ModelRecordUpdate(BaseModel):
    """
    Schema for editing a model record (PUT /models/{id}).

    Only fields present in the payload are applied. An explicit null for
    imageId or videoId clears the reference.
    """

    title: str | None = Field(
        default=None,
        min_length=1,
        max_length=200,
    )
    description: str | None = Field(
        default=None,
        max_length=5000,
    )
    is_public: bool | None = Field(default=None, alias="isPublic")
    image_id: str | None = Field(default=None, max_length=512, alias="imageId")
    video_id: str | None = Field(default=None, max_length=512, alias="videoId")
    model_files: list[ModelFileRef] | None = Field(
        default=None,
        max_length=MAX_MODEL_FILES,
        alias="modelFiles",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        protected_namespaces=(),
    )

    @field_validator("title", "description", "model_files")
    @classmethod
    def not_null_when_given(cls, v):
        """Defaults are not validated, so this only rejects an explicit null."""
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("image_id", "video_id")
    @classmethod
    def blank_keys_are_absent(cls, v: str | None) -> str | None:
        return _blank_key_to_none(v)

    def to_fields(self) -> dict[str, Any]:
        """Column values for the fields the client actually sent."""
        fields = self.model_dump(exclude_unset=True)
        if "model_files" in fields:
            fields["model_files"] = [
                ref.model_dump(exclude_none=True) for ref in self.model_files
            ]
        return fields


class RecordFilter(BaseModel):
    """Listing filter."""

    public_only: bool = False
    author_id: str | None = None


# ===================
# Response Schemas
# ===================

class ModelRecordResponse(BaseModel):
    """JSON response for a single model record."""

    id: str
    title: str
    description: str
    is_public: bool | None = Field(default=None, alias="isPublic")
    image_id: str | None = Field(default=None, alias="imageId")
    video_id: str | None = Field(default=None, alias="videoId")
    model_files: list[ModelFileRef] = Field(default_factory=list, alias="modelFiles")
    author_id: str = Field(alias="authorId")
    author: AuthorProjection | None = None
    date_created: datetime = Field(alias="dateCreated")

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        protected_namespaces=(),
    )


class ModelRecordListResponse(BaseModel):
    """List of model records."""

    items: list[ModelRecordResponse]
    total: int


class FileUploadResponse(BaseModel):
    """Result of storing an uploaded asset."""

    key: str
    url: str
    size: int
    content_type: str = Field(alias="contentType")

    model_config = ConfigDict(populate_by_name=True)
