"""
Folio Backend — Album Service (Resource Orchestrator)
=======================================================

What:  Album and image lifecycle: create with uploads, list, read, update,
       delete, and single-image removal.
Why:   Albums pair database rows with objects in storage. The ordering of the
       two kinds of writes is what keeps them consistent, and it lives here.
How:   Composes UploadValidator, an ObjectStorage backend, and the session.
Who:   Called by the /api/albums routes.

Orchestration Flow (create / update with images):
    ┌──────────┐    ┌──────────┐    ┌────────────┐    ┌────────────┐    ┌────────┐
    │ Validate │───▶│ Album    │───▶│ Upload     │───▶│ Insert     │───▶│ Commit │
    │ all files│    │ row      │    │ object i   │    │ Image i    │    │        │
    └──────────┘    └──────────┘    └────────────┘    └────────────┘    └────────┘
                                          ▲                 │
                                          └──── next i ─────┘

    An Image row is only inserted once its object has been uploaded, so the
    database never points at a missing object. On any failure the transaction
    is rolled back and every object uploaded so far is deleted again, newest
    first. A compensation delete that fails is logged with its path.

Orchestration Flow (album delete):
    1. Delete every image's object; collect failures instead of stopping.
    2. Delete the Image rows whose objects are gone.
    3. No failures  → owner-scoped DELETE of the album row, commit.
       Any failures → commit step 2, keep the album and the failed images,
                      raise StorageCleanupError listing them. Retrying the
                      delete picks up exactly where this one stopped.

Unlike ReflectionService, this service commits itself: a failing commit must
still reach the compensation path, which is not possible once control has
returned to get_db_session.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from folio.config import settings
from folio.exceptions import (
    DatabaseError,
    FolioError,
    NotFoundError,
    StorageCleanupError,
    StorageError,
)
from folio.models.album import Album, Image
from folio.schemas.album import AlbumCreate, AlbumResponse, AlbumUpdate
from folio.security import policy
from folio.security.principal import Principal
from folio.services.lifecycle import utc_now
from folio.services.storage_service import ObjectStorage
from folio.services.upload_service import (
    ImagePayload,
    UploadValidator,
    ValidatedImage,
    upload_validator,
)

logger = logging.getLogger(__name__)

RESOURCE = "album"


class AlbumService:
    """
    Business logic layer for albums and their images.

    Error Handling Strategy:
        - Invalid files                   → ValidationError (400), nothing written
        - Upload / database failure       → rollback + compensation, then
                                            StorageError / DatabaseError (400)
        - Partial storage delete failure  → StorageCleanupError (400)
    """

    def __init__(self, validator: Optional[UploadValidator] = None, bucket: Optional[str] = None):
        self.validator = validator or upload_validator
        self.bucket = bucket or settings.storage_bucket

    # ── Reads ─────────────────────────────────────────────────────────────

    async def _load(self, db: AsyncSession, album_id: str) -> Optional[Album]:
        result = await db.execute(
            select(Album)
            .options(selectinload(Album.uploaded_by), selectinload(Album.images))
            .where(Album.id == album_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, db: AsyncSession, album_id: str) -> AlbumResponse:
        """Albums are public; only a missing id fails."""
        album = await self._load(db, album_id)
        if album is None:
            raise NotFoundError(resource=RESOURCE, resource_id=album_id)
        return AlbumResponse.model_validate(album)

    async def list(
        self,
        db: AsyncSession,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[AlbumResponse]:
        """
        Albums ordered by the day they were taken, most recent first.

        Query plan:
            SELECT * FROM album ORDER BY date DESC, created_at DESC
            LIMIT :limit OFFSET :offset   → idx_album_date
        """
        page_size = limit or settings.album_page_size
        result = await db.execute(
            select(Album)
            .options(selectinload(Album.uploaded_by), selectinload(Album.images))
            .order_by(Album.date.desc(), Album.created_at.desc(), Album.id)
            .limit(page_size)
            .offset(offset)
        )
        return [AlbumResponse.model_validate(album) for album in result.scalars().all()]

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _owner_of(self, db: AsyncSession, album_id: str) -> str:
        result = await db.execute(select(Album.uploaded_by_id).where(Album.id == album_id))
        owner_id = result.scalar_one_or_none()
        if owner_id is None:
            raise NotFoundError(resource=RESOURCE, resource_id=album_id)
        return owner_id

    async def _upload_images(
        self,
        db: AsyncSession,
        storage: ObjectStorage,
        album_id: str,
        user_id: str,
        images: Sequence[ValidatedImage],
        uploaded: List[str],
    ) -> None:
        """
        Upload each image, then insert its row.

        `uploaded` is filled as objects land so the caller can compensate.
        """
        for item in images:
            path = item.storage_path(album_id)
            url = await storage.upload(self.bucket, path, item.payload.content, item.content_type)
            uploaded.append(path)
            db.add(
                Image(
                    url=url,
                    storage_path=path,
                    alt=item.payload.alt,
                    caption=item.payload.caption,
                    width=item.width,
                    height=item.height,
                    size=item.size,
                    album_id=album_id,
                    user_id=user_id,
                )
            )
            await db.flush()

    async def _compensate(self, storage: ObjectStorage, paths: Sequence[str]) -> List[str]:
        """
        Delete objects uploaded by a failed request, newest first.

        Returns the paths that could not be removed (already logged).
        """
        leftovers = []
        for path in reversed(paths):
            try:
                await storage.delete(self.bucket, path)
            except StorageError as e:
                leftovers.append(path)
                logger.error(
                    "Compensation failed: orphaned object %s/%s (%s)",
                    self.bucket, path, e.message,
                )
        if paths:
            logger.info(
                "Compensation removed %d of %d uploaded objects",
                len(paths) - len(leftovers), len(paths),
            )
        return leftovers

    async def _abort(
        self,
        db: AsyncSession,
        storage: ObjectStorage,
        uploaded: Sequence[str],
        error: Exception,
        operation: str,
    ) -> FolioError:
        """Roll back, undo uploads, and translate `error` into an application error."""
        await db.rollback()
        await self._compensate(storage, uploaded)
        if isinstance(error, FolioError):
            return error
        logger.error("Unexpected error during album %s: %s", operation, error, exc_info=error)
        if isinstance(error, SQLAlchemyError):
            return DatabaseError(
                message=f"Could not {operation} the album. Please try again.",
                context={"error_type": type(error).__name__},
            )
        return StorageError(
            message=f"Could not {operation} the album. Please try again.",
            context={"error_type": type(error).__name__},
        )

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create(
        self,
        db: AsyncSession,
        storage: ObjectStorage,
        principal: Principal,
        data: AlbumCreate,
        payloads: Sequence[ImagePayload] = (),
    ) -> AlbumResponse:
        """
        Create an album owned by `principal` together with its images.

        Either the album and every image exist afterwards, or none of them
        do (objects included, barring a logged compensation failure).
        """
        validated = self.validator.validate_all(payloads)

        album = Album(
            name=data.name,
            description=data.description,
            date=data.date,
            uploaded_by_id=principal.id,
        )
        uploaded: List[str] = []
        try:
            db.add(album)
            await db.flush()
            await self._upload_images(db, storage, album.id, principal.id, validated, uploaded)
            await db.commit()
        except Exception as e:
            raise await self._abort(db, storage, uploaded, e, "create") from e

        logger.info(
            "Album created: %s (%d images, owner=%s)", album.id, len(uploaded), principal.id
        )
        return AlbumResponse.model_validate(await self._load(db, album.id))

    async def update(
        self,
        db: AsyncSession,
        storage: ObjectStorage,
        principal: Principal,
        album_id: str,
        data: AlbumUpdate,
        payloads: Sequence[ImagePayload] = (),
    ) -> AlbumResponse:
        """
        Update metadata and append images. Existing images are untouched;
        remove them with delete_image.
        """
        owner_id = await self._owner_of(db, album_id)
        policy.ensure_can_mutate(principal, owner_id, RESOURCE, album_id)
        validated = self.validator.validate_all(payloads)

        values: Dict[str, Any] = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None or key == "description"
        }
        values["updated_at"] = utc_now()

        uploaded: List[str] = []
        try:
            result = await db.execute(
                update(Album)
                .where(Album.id == album_id, Album.uploaded_by_id == principal.id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(resource=RESOURCE, resource_id=album_id)
            await self._upload_images(db, storage, album_id, principal.id, validated, uploaded)
            await db.commit()
        except Exception as e:
            raise await self._abort(db, storage, uploaded, e, "update") from e

        logger.info("Album updated: %s (fields=%s, new images=%d)", album_id, sorted(values), len(uploaded))
        return AlbumResponse.model_validate(await self._load(db, album_id))

    async def delete(
        self,
        db: AsyncSession,
        storage: ObjectStorage,
        principal: Principal,
        album_id: str,
    ) -> None:
        """
        Delete an album, its images, and their stored objects.

        Raises:
            StorageCleanupError: some objects could not be deleted; the album
                and exactly those images are kept.
        """
        owner_id = await self._owner_of(db, album_id)
        policy.ensure_can_mutate(principal, owner_id, RESOURCE, album_id)

        result = await db.execute(
            select(Image.id, Image.storage_path).where(Image.album_id == album_id)
        )
        images = result.all()

        removed: List[str] = []
        failures: List[Dict[str, Any]] = []
        for image_id, storage_path in images:
            try:
                await storage.delete(self.bucket, storage_path)
                removed.append(image_id)
            except StorageError as e:
                logger.warning(
                    "Could not delete object for image %s (%s/%s): %s",
                    image_id, self.bucket, storage_path, e.message,
                )
                failures.append({"image_id": image_id, "path": storage_path, "error": e.message})

        if removed:
            await db.execute(
                delete(Image)
                .where(Image.id.in_(removed), Image.album_id == album_id)
                .execution_options(synchronize_session=False)
            )

        if failures:
            await db.commit()
            logger.error(
                "Album %s kept: %d of %d image objects could not be deleted",
                album_id, len(failures), len(images),
            )
            raise StorageCleanupError(failures=failures, context={"album_id": album_id})

        result = await db.execute(
            delete(Album)
            .where(Album.id == album_id, Album.uploaded_by_id == principal.id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            raise NotFoundError(resource=RESOURCE, resource_id=album_id)
        await db.commit()
        logger.info("Album deleted: %s (%d images)", album_id, len(removed))

    async def delete_image(
        self,
        db: AsyncSession,
        storage: ObjectStorage,
        principal: Principal,
        album_id: str,
        image_id: str,
    ) -> AlbumResponse:
        """
        Remove one image: ownership of the parent album first, then the
        stored object, then the row. Returns the album as it now stands.
        """
        owner_id = await self._owner_of(db, album_id)
        policy.ensure_can_mutate(principal, owner_id, RESOURCE, album_id)

        result = await db.execute(
            select(Image.storage_path).where(Image.id == image_id, Image.album_id == album_id)
        )
        storage_path = result.scalar_one_or_none()
        if storage_path is None:
            raise NotFoundError(resource="image", resource_id=image_id)

        # A storage failure propagates before the row is touched
        await storage.delete(self.bucket, storage_path)

        owned_album = select(Album.id).where(
            Album.id == album_id, Album.uploaded_by_id == principal.id
        )
        result = await db.execute(
            delete(Image)
            .where(Image.id == image_id, Image.album_id.in_(owned_album))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(resource="image", resource_id=image_id)
        await db.execute(
            update(Album)
            .where(Album.id == album_id)
            .values(updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        await db.commit()

        logger.info("Image deleted: %s from album %s", image_id, album_id)
        return AlbumResponse.model_validate(await self._load(db, album_id))


# ── Singleton Instance ────────────────────────────────────────────────────
album_service = AlbumService()
