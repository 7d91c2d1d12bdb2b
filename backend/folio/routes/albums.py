"""
Folio Backend — Album Route Handlers
======================================

What:  /api/albums: create (with images), list, get, update, delete, and
       removal of a single image.
Why:   Albums are created from the dashboard with the photos attached, so
       create and update take multipart/form-data rather than JSON.
How:   Reads the form, turns the files into ImagePayloads, and delegates to
       AlbumService with the process-wide object storage.

Multipart fields (create / update):
    name, description, date (YYYY-MM-DD)
    images   repeated file field
    alt      optional, repeated; alt[i] belongs to images[i]
    caption  optional, repeated; caption[i] belongs to images[i]
"""

import logging
from datetime import date as date_type
from typing import List, Optional, Type, TypeVar

import pydantic
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from folio.config import settings
from folio.database import get_db_session
from folio.exceptions import ValidationError
from folio.schemas.album import AlbumCreate, AlbumResponse, AlbumUpdate
from folio.schemas.common import CamelModel, DeleteResponse, ErrorResponse
from folio.security.identity import require_principal
from folio.security.principal import Principal
from folio.services.album_service import album_service
from folio.services.storage_service import ObjectStorage, get_storage
from folio.services.upload_service import ImagePayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/albums", tags=["Albums"])

ModelT = TypeVar("ModelT", bound=CamelModel)

_MUTATION_ERRORS = {
    400: {"description": "Invalid input or storage failure", "model": ErrorResponse},
    401: {"description": "Not signed in", "model": ErrorResponse},
    403: {"description": "Not the uploader", "model": ErrorResponse},
    404: {"description": "Album or image not found", "model": ErrorResponse},
}


def _metadata(model: Type[ModelT], **fields) -> ModelT:
    """Validate form fields through a schema; failures are 400s like JSON bodies."""
    try:
        return model(**fields)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        raise ValidationError(
            message=first["msg"],
            field=".".join(str(part) for part in first["loc"]),
        ) from e


def _optional(values: Optional[List[str]], index: int) -> Optional[str]:
    if not values or index >= len(values):
        return None
    return values[index].strip() or None


async def _read_payloads(
    images: Optional[List[UploadFile]],
    alt: Optional[List[str]],
    caption: Optional[List[str]],
) -> List[ImagePayload]:
    """Read every uploaded file into memory (size is bounded by validation)."""
    payloads = []
    for index, upload in enumerate(images or []):
        try:
            # Browsers send an empty part when no file was picked
            if not upload.filename:
                continue
            content = await upload.read()
        finally:
            await upload.close()
        payloads.append(
            ImagePayload(
                filename=upload.filename,
                content=content,
                alt=_optional(alt, index),
                caption=_optional(caption, index),
            )
        )
    return payloads


@router.post(
    "/create",
    status_code=201,
    response_model=AlbumResponse,
    responses={
        400: {"description": "Invalid input or storage failure", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
    },
    summary="Create an album with its images",
)
async def create_album(
    name: str = Form(...),
    date: date_type = Form(...),
    description: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    alt: Optional[List[str]] = Form(None),
    caption: Optional[List[str]] = Form(None),
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db_session),
    storage: ObjectStorage = Depends(get_storage),
) -> AlbumResponse:
    """
    Every file is validated before the first one is uploaded. If any upload
    or insert fails, nothing is kept: rows are rolled back and uploaded
    objects removed.
    """
    data = _metadata(AlbumCreate, name=name, date=date, description=description or None)
    payloads = await _read_payloads(images, alt, caption)
    logger.info("Received album create: name=%s, images=%d", data.name, len(payloads))
    return await album_service.create(db, storage, principal, data, payloads)


@router.get("", response_model=List[AlbumResponse], summary="List albums")
async def list_albums(
    limit: int = Query(default=settings.album_page_size, ge=1, le=settings.album_page_size_max),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> List[AlbumResponse]:
    """Most recent album date first."""
    return await album_service.list(db, limit=limit, offset=offset)


@router.get(
    "/{album_id}",
    response_model=AlbumResponse,
    responses={404: {"description": "Album not found", "model": ErrorResponse}},
    summary="Get an album",
)
async def get_album(
    album_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> AlbumResponse:
    return await album_service.get(db, album_id)


@router.put(
    "/{album_id}",
    response_model=AlbumResponse,
    responses=_MUTATION_ERRORS,
    summary="Update an album and add images",
)
async def update_album(
    album_id: str,
    name: Optional[str] = Form(None),
    date: Optional[date_type] = Form(None),
    description: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    alt: Optional[List[str]] = Form(None),
    caption: Optional[List[str]] = Form(None),
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db_session),
    storage: ObjectStorage = Depends(get_storage),
) -> AlbumResponse:
    """
    Omitted fields are left unchanged. New images are appended.
    """
    fields = {}
    if name is not None:
        fields["name"] = name
    if date is not None:
        fields["date"] = date
    if description is not None:
        fields["description"] = description
    data = _metadata(AlbumUpdate, **fields)
    payloads = await _read_payloads(images, alt, caption)
    return await album_service.update(db, storage, principal, album_id, data, payloads)


@router.delete(
    "/{album_id}",
    response_model=DeleteResponse,
    responses=_MUTATION_ERRORS,
    summary="Delete an album and all of its images",
)
async def delete_album(
    album_id: str,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db_session),
    storage: ObjectStorage = Depends(get_storage),
) -> DeleteResponse:
    """
    If some stored objects cannot be removed the album is kept and the
    response (400, `storage_cleanup_failed`) lists the affected images.
    """
    await album_service.delete(db, storage, principal, album_id)
    return DeleteResponse()


@router.delete(
    "/{album_id}/images/{image_id}",
    response_model=AlbumResponse,
    responses=_MUTATION_ERRORS,
    summary="Remove one image from an album",
)
async def delete_album_image(
    album_id: str,
    image_id: str,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db_session),
    storage: ObjectStorage = Depends(get_storage),
) -> AlbumResponse:
    return await album_service.delete_image(db, storage, principal, album_id, image_id)
