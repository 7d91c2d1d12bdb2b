"""
Folio Backend — Tag Route Handlers
====================================

What:  GET /api/tags (public) and POST /api/tags/create (signed-in users).
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from folio.database import get_db_session
from folio.schemas.common import ErrorResponse
from folio.schemas.reflection import TagCreate, TagResponse
from folio.security.identity import require_principal
from folio.security.principal import Principal
from folio.services.tag_service import tag_service

router = APIRouter(prefix="/api/tags", tags=["Tags"])


@router.get("", response_model=List[TagResponse], summary="List tags")
async def list_tags(db: AsyncSession = Depends(get_db_session)) -> List[TagResponse]:
    return await tag_service.list(db)


@router.post(
    "/create",
    status_code=201,
    response_model=TagResponse,
    responses={
        400: {"description": "Duplicate or empty name", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
    },
    summary="Create a tag",
)
async def create_tag(
    body: TagCreate,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db_session),
) -> TagResponse:
    return await tag_service.create(db, principal, body)
