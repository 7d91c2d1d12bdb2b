"""
Folio Backend — Reflection & Tag Models
=========================================

What:  ORM models for reflections (authored text entries), tags, and the
       reflection ↔ tag association.
Why:   Maps Python objects to database rows for type-safe database operations.
Who:   Used by ReflectionService / TagService and by Alembic.

Table Design Rationale:
    - slug UNIQUE: reflections are addressed by slug on the public site; the
      database constraint is the final arbiter when two writers race.
    - status + publish_date: a PUBLISHED row always carries a publish_date.
    - author_id: the single owner, set at creation and never updated.
    - reflection_tag.assigned_at: when the tag was attached; a tag update
      replaces the whole set, so this is reset on every replacement.
    - ON DELETE CASCADE on reflection_tag: deleting a reflection removes its
      tag associations but never the tags themselves.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from folio.database import Base


class ReflectionStatus(str, enum.Enum):
    """Publication state of a reflection. DRAFT is initial, PUBLISHED terminal."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


class Reflection(Base):
    """
    An authored text entry.

    Query Patterns:
        - Public listing: WHERE status = 'PUBLISHED' ORDER BY created_at DESC
        - Author dashboard: WHERE author_id = :me
        - Owner projection before any write: SELECT author_id WHERE id = :id
    """

    __tablename__ = "reflection"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # Stored as the enum's string value: 'DRAFT' | 'PUBLISHED'
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReflectionStatus.DRAFT.value,
        server_default=text("'DRAFT'"),
    )
    publish_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    author_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
    )
    featured_image_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("image.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # ── Relationships ─────────────────────────────────────────────────────
    # lazy="raise": async sessions cannot lazy-load; services eager-load explicitly
    author = relationship("User", lazy="raise")
    featured_image = relationship("Image", lazy="raise")
    tag_links: Mapped[List["ReflectionTag"]] = relationship(
        back_populates="reflection",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReflectionTag.assigned_at",
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_reflection_author_id", "author_id"),
        Index("idx_reflection_status", "status"),
        CheckConstraint("status IN ('DRAFT', 'PUBLISHED')", name="ck_reflection_status"),
        CheckConstraint(
            "status <> 'PUBLISHED' OR publish_date IS NOT NULL",
            name="ck_reflection_published_has_date",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Reflection(id={self.id}, slug='{self.slug}', status='{self.status}')>"
        )


class Tag(Base):
    """A label that can be attached to any number of reflections."""

    __tablename__ = "tag"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}')>"


class ReflectionTag(Base):
    """Association entity between Reflection and Tag."""

    __tablename__ = "reflection_tag"

    reflection_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("reflection.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tag.id", ondelete="CASCADE"),
        primary_key=True,
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    reflection: Mapped["Reflection"] = relationship(back_populates="tag_links", lazy="raise")
    tag: Mapped["Tag"] = relationship(lazy="raise")
