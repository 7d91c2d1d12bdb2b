"""
Folio Backend — Reflection Route Handlers
===========================================

What:  /api/reflections: create, list, get, update, delete, publish.
How:   Resolves the principal, delegates to ReflectionService, returns JSON.
Who:   Called by the public site (reads) and the dashboard (everything).

Auth per endpoint:
    POST   /create         required
    GET    /               optional (drafts only ever shown to their author)
    GET    /{id}           optional (hidden drafts are 404)
    PUT    /{id}           owner
    DELETE /{id}           owner
    PATCH  /{id}/publish   owner
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from folio.database import get_db_session
from folio.models.reflection import ReflectionStatus
from folio.schemas.common import DeleteResponse, ErrorResponse
from folio.schemas.reflection import ReflectionCreate, ReflectionResponse, ReflectionUpdate
from folio.security.identity import get_principal, require_principal
from folio.security.principal import Principal
from folio.services.reflection_service import reflection_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reflections", tags=["Reflections"])

_MUTATION_ERRORS = {
    400: {"description": "Invalid input or upstream failure", "model": ErrorResponse},
    401: {"description": "Not signed in", "model": ErrorResponse},
    403: {"description": "Not the author", "model": ErrorResponse},
    404: {"description": "Reflection not found", "model": ErrorResponse},
}


@router.post(
    "/create",
    status_code=201,
    response_model=ReflectionResponse,
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
    },
    summary="Create a reflection",
)
async def create_reflection(
    body: ReflectionCreate,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db_session),
) -> ReflectionResponse:
    """
    Create a reflection owned by the caller.

    The slug is derived from the title when omitted (`Hello World` →
    `hello-world`, then `hello-world-2`, ...). Status defaults to DRAFT.
    """
    return await reflection_service.create(db, principal, body)


@router.get(
    "",
    response_model=List[ReflectionResponse],
    summary="List reflections",
    description=(
        "Anonymous callers only ever see published reflections. Asking for drafts "
        "of another author returns an empty list."
    ),
)
async def list_reflections(
    status: Optional[ReflectionStatus] = Query(default=None, description="DRAFT or PUBLISHED"),
    author_id: Optional[str] = Query(default=None, alias="authorId"),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db_session),
) -> List[ReflectionResponse]:
    return await reflection_service.list(db, principal, status=status, author_id=author_id)


@router.get(
    "/{reflection_id}",
    response_model=ReflectionResponse,
    responses={404: {"description": "Reflection not found", "model": ErrorResponse}},
    summary="Get a reflection",
)
async def get_reflection(
    reflection_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db_session),
) -> ReflectionResponse:
    return await reflection_service.get(db, principal, reflection_id)


@router.put(
    "/{reflection_id}",
    response_model=ReflectionResponse,
    responses=_MUTATION_ERRORS,
    summary="Update a reflection",
)
async def update_reflection(
    reflection_id: str,
    body: ReflectionUpdate,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db_session),
) -> ReflectionResponse:
    """
    Partial update. `tags`, when present, replaces the whole set.

    A published reflection cannot be moved back to DRAFT (400).
    """
    return await reflection_service.update(db, principal, reflection_id, body)


@router.delete(
    "/{reflection_id}",
    response_model=DeleteResponse,
    responses=_MUTATION_ERRORS,
    summary="Delete a reflection",
)
async def delete_reflection(
    reflection_id: str,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db_session),
) -> DeleteResponse:
    await reflection_service.delete(db, principal, reflection_id)
    return DeleteResponse()


@router.patch(
    "/{reflection_id}/publish",
    response_model=ReflectionResponse,
    responses=_MUTATION_ERRORS,
    summary="Publish a reflection",
)
async def publish_reflection(
    reflection_id: str,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db_session),
) -> ReflectionResponse:
    """Publishing again moves publishDate forward to now."""
    return await reflection_service.publish(db, principal, reflection_id)
