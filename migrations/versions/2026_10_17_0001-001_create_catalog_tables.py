"""Create users and model_records tables

Revision ID: 001
Revises: None
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(255), primary_key=True, comment="Identity subject (sub claim)"),
        sa.Column("username", sa.String(255), nullable=False, comment="Display name"),
        sa.Column("email", sa.String(255), nullable=True, comment="Contact address"),
        sa.Column("institution", sa.String(100), nullable=True),
        sa.Column("roles", sa.JSON(), nullable=True, comment="Roles from the identity token"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "model_records",
        sa.Column("id", sa.String(36), primary_key=True, comment="Store-assigned record identifier"),
        sa.Column("title", sa.String(200), nullable=False, comment="Display title (1-200 chars)"),
        sa.Column("description", sa.Text(), nullable=False, comment="Free-text description"),
        sa.Column("author_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False, comment="Identity of the creating author"),
        sa.Column("is_public", sa.Boolean(), nullable=True, comment="Visibility flag; NULL is treated as public (legacy records)"),
        sa.Column("image_id", sa.String(512), nullable=True, comment="Object store key of the preview image"),
        sa.Column("video_id", sa.String(512), nullable=True, comment="Object store key of the preview video"),
        sa.Column("model_files", sa.JSON(), nullable=False, comment="Ordered model file references"),
        sa.Column("date_created", sa.DateTime(timezone=True), nullable=False, comment="Creation timestamp, set once"),
    )
    op.create_index("ix_model_records_title", "model_records", ["title"])
    op.create_index("ix_model_records_author_id", "model_records", ["author_id"])
    op.create_index("ix_model_records_is_public", "model_records", ["is_public"])
    op.create_index("ix_model_records_date_created", "model_records", ["date_created"])


def downgrade() -> None:
    op.drop_index("ix_model_records_date_created", table_name="model_records")
    op.drop_index("ix_model_records_is_public", table_name="model_records")
    op.drop_index("ix_model_records_author_id", table_name="model_records")
    op.drop_index("ix_model_records_title", table_name="model_records")
    op.drop_table("model_records")
    op.drop_table("users")
