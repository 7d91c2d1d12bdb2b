"""
Folio Backend — Reflection Service (Resource Orchestrator)
============================================================

What:  Create, list, read, update, delete and publish reflections.
Why:   Keeps the sequencing of authorization → validation → persistence →
       response shaping out of the route handlers.
Who:   Called by the /api/reflections routes.

Orchestration Flow (mutations):
    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────┐
    │ Owner        │───▶│ Ownership    │───▶│ Owner-scoped │───▶│ Re-fetch │
    │ projection   │    │ Guard        │    │ UPDATE/DELETE│    │ & shape  │
    └──────────────┘    └──────────────┘    └──────────────┘    └──────────┘

    The projection read only loads author_id (plus lifecycle columns), so a
    403 / 404 is decided without ever trusting an owner supplied by the client.
    The write itself carries `WHERE id = :id AND author_id = :principal`, so a
    concurrent change of hands between the read and the write cannot slip
    through: the write simply matches zero rows and is reported as not found.

Design Decision:
    ReflectionService is stateless; every call receives the session and the
    principal. Commit happens in get_db_session once the handler returns.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from folio.exceptions import NotFoundError, ValidationError
from folio.models.album import Image
from folio.models.reflection import Reflection, ReflectionStatus, ReflectionTag, Tag
from folio.schemas.album import ImageResponse
from folio.schemas.common import AuthorSummary
from folio.schemas.reflection import (
    ReflectionCreate,
    ReflectionResponse,
    ReflectionTagResponse,
    ReflectionUpdate,
)
from folio.security import policy
from folio.security.principal import Principal
from folio.services import lifecycle
from folio.services.slugs import create_slug, unique_slug

logger = logging.getLogger(__name__)

RESOURCE = "reflection"


def _with_relations(query):
    """Eager-load everything response shaping touches (relationships are lazy='raise')."""
    return query.options(
        selectinload(Reflection.author),
        selectinload(Reflection.featured_image),
        selectinload(Reflection.tag_links).selectinload(ReflectionTag.tag),
    )


def to_response(reflection: Reflection) -> ReflectionResponse:
    """Shape an eager-loaded Reflection into its API representation."""
    return ReflectionResponse(
        id=reflection.id,
        title=reflection.title,
        content=reflection.content,
        slug=reflection.slug,
        status=reflection.status,
        publish_date=reflection.publish_date,
        author_id=reflection.author_id,
        featured_image_id=reflection.featured_image_id,
        featured_image=(
            ImageResponse.model_validate(reflection.featured_image)
            if reflection.featured_image is not None
            else None
        ),
        tags=[
            ReflectionTagResponse(
                id=link.tag.id,
                name=link.tag.name,
                slug=link.tag.slug,
                assigned_at=link.assigned_at,
            )
            for link in reflection.tag_links
        ],
        author=(
            AuthorSummary.model_validate(reflection.author)
            if reflection.author is not None
            else None
        ),
        created_at=reflection.created_at,
        updated_at=reflection.updated_at,
    )


class ReflectionService:
    """
    Business logic layer for reflections.

    Error Handling Strategy:
        - Hidden drafts and unknown ids    → NotFoundError (404)
        - Anonymous / foreign mutations    → UnauthenticatedError / ForbiddenError
        - Unknown tag or image references  → ValidationError (400)
        - Slug collisions                  → ValidationError (400); the unique
          constraint is the backstop when two writers race
    """

    # ── Reads ─────────────────────────────────────────────────────────────

    async def _load(self, db: AsyncSession, reflection_id: str) -> Optional[Reflection]:
        result = await db.execute(
            _with_relations(select(Reflection))
            .where(Reflection.id == reflection_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(
        self,
        db: AsyncSession,
        principal: Principal,
        reflection_id: str,
    ) -> ReflectionResponse:
        """
        Single reflection, subject to the Visibility Policy.

        A draft requested by anyone other than its author is reported exactly
        like a missing id.
        """
        reflection = await self._load(db, reflection_id)
        if reflection is None:
            raise NotFoundError(resource=RESOURCE, resource_id=reflection_id)
        policy.ensure_can_view(
            principal, reflection.author_id, reflection.status, RESOURCE, reflection_id
        )
        return to_response(reflection)

    async def list(
        self,
        db: AsyncSession,
        principal: Principal,
        status: Optional[ReflectionStatus] = None,
        author_id: Optional[str] = None,
    ) -> List[ReflectionResponse]:
        """
        Reflections visible to `principal`, newest first.

        The requested filters are first reconciled with the listing rules;
        a scope that can only ever be empty never reaches the database.
        """
        scope = policy.listing_scope(principal, status=status, author_id=author_id)
        if scope.empty:
            logger.debug("Listing short-circuited to empty (status=%s, author=%s)", status, author_id)
            return []

        query = _with_relations(select(Reflection))
        if scope.status is not None:
            query = query.where(Reflection.status == scope.status.value)
        elif scope.drafts_of is not None:
            query = query.where(
                or_(
                    Reflection.status == ReflectionStatus.PUBLISHED.value,
                    Reflection.author_id == scope.drafts_of,
                )
            )
        else:
            query = query.where(Reflection.status == ReflectionStatus.PUBLISHED.value)

        if scope.author_id is not None:
            query = query.where(Reflection.author_id == scope.author_id)

        query = query.order_by(Reflection.created_at.desc(), Reflection.id)
        result = await db.execute(query)
        return [to_response(r) for r in result.scalars().all()]

    # ── Validation helpers ────────────────────────────────────────────────

    async def _slug_taken(self, db: AsyncSession, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = select(Reflection.id).where(Reflection.slug == slug)
        if exclude_id is not None:
            query = query.where(Reflection.id != exclude_id)
        result = await db.execute(query.limit(1))
        return result.first() is not None

    async def _resolve_slug(
        self,
        db: AsyncSession,
        title: str,
        explicit: Optional[str],
        exclude_id: Optional[str] = None,
    ) -> str:
        """
        Explicit slugs are normalized and must be free; derived slugs get a
        numeric suffix until they are.
        """
        if explicit is not None:
            slug = create_slug(explicit)
            if not slug:
                raise ValidationError(
                    message="Slug must contain at least one letter or digit",
                    field="slug",
                )
            if await self._slug_taken(db, slug, exclude_id):
                raise ValidationError(
                    message=f"Slug '{slug}' is already in use",
                    field="slug",
                    context={"slug": slug},
                )
            return slug

        base = create_slug(title) or RESOURCE
        try:
            return await unique_slug(base, lambda s: self._slug_taken(db, s, exclude_id))
        except ValueError as e:
            raise ValidationError(message=str(e), field="slug") from e

    async def _ensure_tags_exist(self, db: AsyncSession, tag_ids: Sequence[str]) -> None:
        if not tag_ids:
            return
        result = await db.execute(select(Tag.id).where(Tag.id.in_(tag_ids)))
        found = set(result.scalars().all())
        missing = [tag_id for tag_id in tag_ids if tag_id not in found]
        if missing:
            raise ValidationError(
                message="One or more tags do not exist",
                field="tags",
                context={"missing": missing},
            )

    async def _ensure_image_exists(self, db: AsyncSession, image_id: Optional[str]) -> None:
        if image_id is None:
            return
        result = await db.execute(select(Image.id).where(Image.id == image_id))
        if result.first() is None:
            raise ValidationError(
                message=f"Featured image '{image_id}' does not exist",
                field="featuredImageId",
                context={"image_id": image_id},
            )

    def _conflict(self, slug: Optional[str], error: IntegrityError) -> ValidationError:
        """Translate a unique-constraint violation (two writers racing for a slug)."""
        logger.info("Integrity error while saving reflection (slug=%s): %s", slug, error.orig)
        return ValidationError(
            message=f"Slug '{slug}' is already in use" if slug else "Reflection conflicts with existing data",
            field="slug" if slug else None,
        )

    async def _flush(self, db: AsyncSession, slug: Optional[str]) -> None:
        try:
            await db.flush()
        except IntegrityError as e:
            raise self._conflict(slug, e) from e

    def _replace_tags(self, db: AsyncSession, reflection_id: str, tag_ids: Sequence[str]) -> None:
        now = lifecycle.utc_now()
        db.add_all(
            ReflectionTag(reflection_id=reflection_id, tag_id=tag_id, assigned_at=now)
            for tag_id in tag_ids
        )

    async def _owner_projection(self, db: AsyncSession, reflection_id: str):
        result = await db.execute(
            select(Reflection.author_id, Reflection.status, Reflection.publish_date).where(
                Reflection.id == reflection_id
            )
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError(resource=RESOURCE, resource_id=reflection_id)
        return row

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create(
        self,
        db: AsyncSession,
        principal: Principal,
        data: ReflectionCreate,
    ) -> ReflectionResponse:
        """
        Create a reflection owned by `principal`.

        Status defaults to DRAFT; creating directly as PUBLISHED stamps
        publish_date when the caller did not supply one.
        """
        await self._ensure_tags_exist(db, data.tags or [])
        await self._ensure_image_exists(db, data.featured_image_id)
        slug = await self._resolve_slug(db, data.title, data.slug)
        status, publish_date = lifecycle.initial_state(data.status, data.publish_date)

        reflection = Reflection(
            title=data.title,
            content=data.content,
            slug=slug,
            status=status.value,
            publish_date=publish_date,
            author_id=principal.id,
            featured_image_id=data.featured_image_id,
        )
        db.add(reflection)
        await self._flush(db, slug)

        if data.tags:
            self._replace_tags(db, reflection.id, data.tags)
            await self._flush(db, None)

        logger.info(
            "Reflection created: %s (slug=%s, status=%s, author=%s)",
            reflection.id, slug, status.value, principal.id,
        )
        return to_response(await self._load(db, reflection.id))

    async def update(
        self,
        db: AsyncSession,
        principal: Principal,
        reflection_id: str,
        data: ReflectionUpdate,
    ) -> ReflectionResponse:
        """
        Partial update by the owner.

        Changing the title keeps the existing slug so published links stay
        valid; pass `slug` explicitly to change it.
        """
        author_id, current_status, current_publish_date = await self._owner_projection(
            db, reflection_id
        )
        policy.ensure_can_mutate(principal, author_id, RESOURCE, reflection_id)

        fields = data.model_dump(exclude_unset=True)
        values = {}
        for name in ("title", "content"):
            if fields.get(name) is not None:
                values[name] = fields[name]
        if "featured_image_id" in fields:
            await self._ensure_image_exists(db, fields["featured_image_id"])
            values["featured_image_id"] = fields["featured_image_id"]
        if fields.get("slug") is not None:
            values["slug"] = await self._resolve_slug(
                db, data.title or "", fields["slug"], exclude_id=reflection_id
            )
        if data.tags is not None:
            await self._ensure_tags_exist(db, data.tags)

        values.update(
            lifecycle.update_values(
                current_status,
                requested_status=data.status,
                requested_publish_date=data.publish_date,
                current_publish_date=current_publish_date,
            )
        )
        values["updated_at"] = lifecycle.utc_now()

        try:
            result = await db.execute(
                update(Reflection)
                .where(Reflection.id == reflection_id, Reflection.author_id == principal.id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as e:
            raise self._conflict(values.get("slug"), e) from e
        if result.rowcount == 0:
            raise NotFoundError(resource=RESOURCE, resource_id=reflection_id)

        if data.tags is not None:
            await db.execute(
                delete(ReflectionTag).where(ReflectionTag.reflection_id == reflection_id)
            )
            self._replace_tags(db, reflection_id, data.tags)
            await self._flush(db, None)

        logger.info("Reflection updated: %s (fields=%s)", reflection_id, sorted(values))
        return to_response(await self._load(db, reflection_id))

    async def publish(
        self,
        db: AsyncSession,
        principal: Principal,
        reflection_id: str,
    ) -> ReflectionResponse:
        """
        Move a reflection to PUBLISHED and stamp publish_date with now.

        Publishing an already published reflection re-stamps the date.
        """
        author_id, _, _ = await self._owner_projection(db, reflection_id)
        policy.ensure_can_mutate(principal, author_id, RESOURCE, reflection_id)

        values = lifecycle.publish_values()
        values["updated_at"] = values["publish_date"]
        result = await db.execute(
            update(Reflection)
            .where(Reflection.id == reflection_id, Reflection.author_id == principal.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(resource=RESOURCE, resource_id=reflection_id)

        logger.info("Reflection published: %s at %s", reflection_id, values["publish_date"].isoformat())
        return to_response(await self._load(db, reflection_id))

    async def delete(
        self,
        db: AsyncSession,
        principal: Principal,
        reflection_id: str,
    ) -> None:
        """Delete in any state. Tag associations go with it; tags themselves stay."""
        author_id, _, _ = await self._owner_projection(db, reflection_id)
        policy.ensure_can_mutate(principal, author_id, RESOURCE, reflection_id)

        await db.execute(
            delete(ReflectionTag).where(ReflectionTag.reflection_id == reflection_id)
        )
        result = await db.execute(
            delete(Reflection)
            .where(Reflection.id == reflection_id, Reflection.author_id == principal.id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(resource=RESOURCE, resource_id=reflection_id)
        logger.info("Reflection deleted: %s", reflection_id)


# ── Singleton Instance ────────────────────────────────────────────────────
reflection_service = ReflectionService()
