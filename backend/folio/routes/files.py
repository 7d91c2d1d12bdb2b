"""
Folio Backend — Stored File Route
===================================

What:  GET /api/files/{bucket}/{path} serves objects of the local storage backend.
Why:   LocalObjectStorage hands out URLs pointing here. With the Supabase
       backend images are served by Supabase itself and this route 404s.

Security:
    The path is resolved against the storage root and rejected if it would
    escape it (`../` sequences, absolute paths).
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from folio.exceptions import NotFoundError, StorageError, ValidationError
from folio.schemas.common import ErrorResponse
from folio.services.storage_service import LocalObjectStorage, ObjectStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["Files"])


@router.get(
    "/{bucket}/{file_path:path}",
    responses={
        200: {"description": "The stored image"},
        400: {"description": "Invalid path", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
    summary="Serve a stored image",
)
async def get_file(
    bucket: str,
    file_path: str,
    storage: ObjectStorage = Depends(get_storage),
) -> FileResponse:
    if not isinstance(storage, LocalObjectStorage):
        raise NotFoundError(resource="file", resource_id=f"{bucket}/{file_path}")

    try:
        full_path = storage.resolve(bucket, file_path)
    except StorageError as e:
        logger.warning("Rejected file path %s/%s", bucket, file_path)
        raise ValidationError(message="Invalid file path", field="path") from e

    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=f"{bucket}/{file_path}")

    # Object keys are random and never reused, so the bytes behind a URL never change
    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
