"""
ModelRecord SQLAlchemy model.

A model record holds catalog metadata plus references (keys) to the binary
assets it owns in the object store: one preview image, an optional video
and an ordered list of model files.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from modelcatalog.db.base import Base

if TYPE_CHECKING:
    from modelcatalog.models.user import User


class ModelRecord(Base):
    """
    3D model catalog entry.

    Every non-null asset key on a record is exclusively owned by it, so a key
    dropped from the record can be deleted from the object store.
    """
    __tablename__ = "model_records"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
        comment="Store-assigned record identifier",
    )
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        index=True,
        comment="Display title (1-200 chars)",
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        comment="Free-text description",
    )
    author_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="Identity of the creating author",
    )
    is_public: Mapped[bool | None] = mapped_column(
        Boolean,
        nullable=True,
        default=None,
        index=True,
        comment="Visibility flag; NULL is treated as public (legacy records)",
    )
    image_id: Mapped[str | None] = mapped_column(
        String(512),
        nullable=True,
        comment="Object store key of the preview image",
    )
    video_id: Mapped[str | None] = mapped_column(
        String(512),
        nullable=True,
        comment="Object store key of the preview video",
    )
    model_files: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment='Ordered model file references: [{"key": "...", "name": "...", "size": 0}]',
    )
    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="Creation timestamp, set once",
    )

    author: Mapped["User"] = relationship("User", back_populates="records", lazy="raise")

    def __repr__(self) -> str:
        return f"<ModelRecord(id={self.id}, title={self.title}, author_id={self.author_id})>"
