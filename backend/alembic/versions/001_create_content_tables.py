"""Create content tables

Revision ID: 001
Revises: None
Create Date: 2026-10-16 00:00:00.000000+00:00

What:  Creates user/session (auth provider), reflection, tag, reflection_tag,
       album and image.
How:   `image` is created before `reflection` because reflection.featured_image_id
       references it.

Rollback: downgrade() drops every table (destructive — all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def upgrade() -> None:
    # ── Auth provider tables ─────────────────────────────────────────────
    op.create_table(
        "user",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("image", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )

    op.create_table(
        "session",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("token", sa.String(255), nullable=False, unique=True),
        sa.Column(
            "user_id",
            sa.String(64),
            sa.ForeignKey("user.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_session_user_id", "session", ["user_id"])

    # ── Albums ───────────────────────────────────────────────────────────
    op.create_table(
        "album",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column(
            "uploaded_by_id",
            sa.String(64),
            sa.ForeignKey("user.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_album_date", "album", ["date"])
    op.create_index("idx_album_uploaded_by_id", "album", ["uploaded_by_id"])

    op.create_table(
        "image",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("storage_path", sa.String(512), nullable=False),
        sa.Column("alt", sa.String(500), nullable=True),
        sa.Column("caption", sa.Text(), nullable=True),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        sa.Column("size", sa.Integer(), nullable=True),
        sa.Column(
            "album_id",
            sa.String(36),
            sa.ForeignKey("album.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.String(64),
            sa.ForeignKey("user.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _timestamp("created_at"),
    )
    op.create_index("idx_image_album_id", "image", ["album_id"])

    # ── Reflections & tags ───────────────────────────────────────────────
    op.create_table(
        "reflection",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'DRAFT'")),
        sa.Column("publish_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "author_id",
            sa.String(64),
            sa.ForeignKey("user.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "featured_image_id",
            sa.String(36),
            sa.ForeignKey("image.id", ondelete="SET NULL"),
            nullable=True,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("status IN ('DRAFT', 'PUBLISHED')", name="ck_reflection_status"),
        sa.CheckConstraint(
            "status <> 'PUBLISHED' OR publish_date IS NOT NULL",
            name="ck_reflection_published_has_date",
        ),
    )
    op.create_index("idx_reflection_author_id", "reflection", ["author_id"])
    op.create_index("idx_reflection_status", "reflection", ["status"])

    op.create_table(
        "tag",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        _timestamp("created_at"),
    )

    op.create_table(
        "reflection_tag",
        sa.Column(
            "reflection_id",
            sa.String(36),
            sa.ForeignKey("reflection.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "tag_id",
            sa.String(36),
            sa.ForeignKey("tag.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        _timestamp("assigned_at"),
    )


def downgrade() -> None:
    op.drop_table("reflection_tag")
    op.drop_table("tag")
    op.drop_index("idx_reflection_status", table_name="reflection")
    op.drop_index("idx_reflection_author_id", table_name="reflection")
    op.drop_table("reflection")
    op.drop_index("idx_image_album_id", table_name="image")
    op.drop_table("image")
    op.drop_index("idx_album_uploaded_by_id", table_name="album")
    op.drop_index("idx_album_date", table_name="album")
    op.drop_table("album")
    op.drop_index("ix_session_user_id", table_name="session")
    op.drop_table("session")
    op.drop_table("user")
