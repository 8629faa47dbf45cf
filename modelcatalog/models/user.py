"""
User SQLAlchemy model.
Local mirror of authenticated identities, kept so records can show their author.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from modelcatalog.db.base import Base

if TYPE_CHECKING:
    from modelcatalog.models.model_record import ModelRecord


class User(Base):
    """Author identity. Only id, username and email are ever projected onto records."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Identity subject (sub claim)",
    )
    username: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name",
    )
    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Contact address",
    )
    institution: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
    roles: Mapped[list | None] = mapped_column(
        JSON,
        nullable=True,
        default=None,
        comment="Roles from the identity token",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    records: Mapped[list["ModelRecord"]] = relationship(
        "ModelRecord",
        back_populates="author",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
