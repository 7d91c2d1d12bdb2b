"""
Folio Backend — Tag Service
=============================

What:  Lists tags and creates new ones.
Why:   Reflections reference tags by id; the dashboard needs a way to create
       them and to show the available set.
Who:   Called by the /api/tags routes.

Tags are shared between authors and have no owner, so any signed-in user may
create one. Names and slugs are globally unique.
"""

import logging
from typing import List

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from folio.exceptions import ValidationError
from folio.models.reflection import Tag
from folio.schemas.reflection import TagCreate, TagResponse
from folio.security.principal import Principal
from folio.services.slugs import create_slug

logger = logging.getLogger(__name__)


class TagService:
    async def list(self, db: AsyncSession) -> List[TagResponse]:
        """All tags, alphabetically."""
        result = await db.execute(select(Tag).order_by(Tag.name))
        return [TagResponse.model_validate(tag) for tag in result.scalars().all()]

    async def create(
        self,
        db: AsyncSession,
        principal: Principal,
        data: TagCreate,
    ) -> TagResponse:
        """
        Create a tag. The slug is derived from the name unless supplied.

        Raises:
            ValidationError: empty slug, or name/slug already in use
        """
        name = data.name.strip()
        slug = create_slug(data.slug if data.slug is not None else name)
        if not name or not slug:
            raise ValidationError(
                message="Tag name must contain at least one letter or digit",
                field="name",
            )

        existing = await db.execute(
            select(Tag.id).where(or_(Tag.name == name, Tag.slug == slug)).limit(1)
        )
        if existing.first() is not None:
            raise ValidationError(
                message=f"A tag named '{name}' (or with slug '{slug}') already exists",
                field="name",
                context={"name": name, "slug": slug},
            )

        tag = Tag(name=name, slug=slug)
        db.add(tag)
        try:
            await db.flush()
        except IntegrityError as e:
            raise ValidationError(
                message=f"A tag named '{name}' (or with slug '{slug}') already exists",
                field="name",
            ) from e

        logger.info("Tag created: %s (slug=%s, by=%s)", tag.id, slug, principal.id)
        return TagResponse.model_validate(tag)


tag_service = TagService()
