"""
Folio Backend — Album & Image Schemas
=======================================

What:  Contracts for /api/albums.
Why:   Album create/update arrive as multipart forms (metadata + files); the
       metadata part is validated through these models so the same rules apply
       whichever route it came in on.
"""

from datetime import date as date_type, datetime
from typing import List, Optional

from pydantic import Field

from folio.schemas.common import AuthorSummary, CamelModel


class AlbumCreate(CamelModel):
    """Metadata fields of POST /api/albums/create."""

    name: str = Field(min_length=1, max_length=255, description="Album name is required")
    description: Optional[str] = None
    date: date_type


class AlbumUpdate(CamelModel):
    """Metadata fields of PUT /api/albums/{id}; anything omitted is left unchanged."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    date: Optional[date_type] = None


class ImageResponse(CamelModel):
    """
    A stored image. `url` is the public locator returned by object storage.

    The storage key is deliberately not exposed.
    """

    id: str
    url: str
    alt: Optional[str] = None
    caption: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    size: Optional[int] = None
    album_id: str
    user_id: str
    created_at: datetime


class AlbumResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    date: date_type
    uploaded_by_id: str
    uploaded_by: Optional[AuthorSummary] = None
    images: List[ImageResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
