"""
Folio Backend — Reflection & Tag Schemas
==========================================

What:  Request and response contracts for /api/reflections and /api/tags.
Who:   Route handlers (validation) and ReflectionService (response shaping).

Note on `status` in updates:
    A draft may be published through an update, but a published reflection
    can never be turned back into a draft. That rule lives in the content
    lifecycle, not here; the schema only checks the value is a known status.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from folio.models.reflection import ReflectionStatus
from folio.schemas.album import ImageResponse
from folio.schemas.common import AuthorSummary, CamelModel


def _dedupe(tag_ids: Optional[List[str]]) -> Optional[List[str]]:
    if tag_ids is None:
        return None
    return list(dict.fromkeys(tag_ids))


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ReflectionCreate(CamelModel):
    """Body of POST /api/reflections/create."""

    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255)
    status: ReflectionStatus = ReflectionStatus.DRAFT
    featured_image_id: Optional[str] = None
    tags: Optional[List[str]] = Field(default=None, description="Tag ids to attach")
    publish_date: Optional[datetime] = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        """Attaching the same tag twice is the same as attaching it once."""
        return _dedupe(v)


class ReflectionUpdate(CamelModel):
    """
    Body of PUT /api/reflections/{id}. Every field is optional.

    `tags`, when present, replaces the whole tag set (an empty list clears it).
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255)
    status: Optional[ReflectionStatus] = None
    featured_image_id: Optional[str] = None
    tags: Optional[List[str]] = None
    publish_date: Optional[datetime] = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        """Attaching the same tag twice is the same as attaching it once."""
        return _dedupe(v)


class TagCreate(CamelModel):
    """Body of POST /api/tags/create."""

    name: str = Field(min_length=1, max_length=100)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=100)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class TagResponse(CamelModel):
    id: str
    name: str
    slug: str
    created_at: datetime


class ReflectionTagResponse(CamelModel):
    """A tag as attached to one reflection, with when it was attached."""

    id: str
    name: str
    slug: str
    assigned_at: datetime


class ReflectionResponse(CamelModel):
    """
    Full representation of a reflection.

    `publish_date` is null for drafts; for published reflections it holds the
    most recent publication time.
    """

    id: str
    title: str
    content: str
    slug: str
    status: ReflectionStatus
    publish_date: Optional[datetime] = None
    author_id: str
    featured_image_id: Optional[str] = None
    featured_image: Optional[ImageResponse] = None
    tags: List[ReflectionTagResponse] = Field(default_factory=list)
    author: Optional[AuthorSummary] = None
    created_at: datetime
    updated_at: datetime
