"""
Folio Backend — Album & Image Models
======================================

What:  ORM models for photo albums and the images they own.
Why:   An Image only exists as part of an Album: it is created by an album
       create/update and deleted with its album or by an explicit removal.
Who:   Used by AlbumService and by Alembic.

Table Design Rationale:
    - image.url: public locator returned by object storage after upload.
    - image.storage_path: object key inside the bucket. Kept alongside the URL
      so deletion never has to parse a key out of a public URL.
    - image.album_id ON DELETE CASCADE: database-level backstop for album
      deletion. Storage objects are removed by the orchestrator beforehand.
    - album.date: the day the photos were taken, not when they were uploaded.
"""

import uuid
from datetime import date as date_type, datetime, timezone
from typing import List, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from folio.database import Base


class Album(Base):
    """A dated collection of photos owned by the user who uploaded it."""

    __tablename__ = "album"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    uploaded_by_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
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

    uploaded_by = relationship("User", lazy="raise")
    images: Mapped[List["Image"]] = relationship(
        back_populates="album",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Image.created_at",
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_album_date", "date"),
        Index("idx_album_uploaded_by_id", "uploaded_by_id"),
    )

    def __repr__(self) -> str:
        return f"<Album(id={self.id}, name='{self.name}', date='{self.date}')>"


class Image(Base):
    """A single stored photo belonging to one album."""

    __tablename__ = "image"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    storage_path: Mapped[str] = mapped_column(String(512), nullable=False)
    alt: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    caption: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    album_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("album.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    album: Mapped["Album"] = relationship(back_populates="images", lazy="raise")

    __table_args__ = (
        Index("idx_image_album_id", "album_id"),
    )

    def __repr__(self) -> str:
        return f"<Image(id={self.id}, album_id={self.album_id})>"
