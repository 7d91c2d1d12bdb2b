"""
Folio Backend — Visibility Policy & Ownership Guard
=====================================================

What:  Pure functions deciding who may read and who may mutate a resource.
Why:   These are the only non-trivial invariants in the system. Keeping them
       free of database and HTTP code makes them exhaustively testable.
Who:   Called by the resource orchestrators before any read is returned or any
       write is issued.

Rules:
    Visibility (single resource):
        PUBLISHED → visible to everyone, anonymous included
        DRAFT     → visible only to its owner; everyone else gets NOT FOUND,
                    so a private draft is indistinguishable from a missing id
    Visibility (listing):
        anonymous              → forced to PUBLISHED whatever was requested
        DRAFT + foreign author → empty result (fail closed, not an error)
        DRAFT without author   → empty result for the same reason
        no status filter       → PUBLISHED, plus the caller's own drafts
    Ownership (update / delete / publish):
        only Authenticated(owner_id) passes; anonymous → 401, other → 403
"""

from dataclasses import dataclass
from typing import Optional

from folio.exceptions import ForbiddenError, NotFoundError, UnauthenticatedError
from folio.models.reflection import ReflectionStatus
from folio.security.principal import Principal


# ══════════════════════════════════════════════════════════════════════════
# Visibility Policy
# ══════════════════════════════════════════════════════════════════════════

def can_view(principal: Principal, owner_id: str, status: Optional[str]) -> bool:
    """
    Decide whether `principal` may read a resource.

    Resources without a publication state (albums) pass `status=None` and are
    public.
    """
    if status is None or status == ReflectionStatus.PUBLISHED:
        return True
    return principal.is_owner_of(owner_id)


def ensure_can_view(
    principal: Principal,
    owner_id: str,
    status: Optional[str],
    resource: str,
    resource_id: str,
) -> None:
    """Raise NotFoundError (never Forbidden) when the resource is hidden."""
    if not can_view(principal, owner_id, status):
        raise NotFoundError(resource=resource, resource_id=resource_id)


@dataclass(frozen=True)
class ListingScope:
    """
    Filters a listing must apply, already reconciled with the caller's identity.

    Attributes:
        empty:          short-circuit, return no rows at all
        status:         restrict to this status (None = no explicit restriction)
        author_id:      restrict to this author (None = any author)
        drafts_of:      when status is None, drafts are only included for this
                        owner id; None means no drafts at all
    """

    empty: bool = False
    status: Optional[ReflectionStatus] = None
    author_id: Optional[str] = None
    drafts_of: Optional[str] = None


def listing_scope(
    principal: Principal,
    status: Optional[ReflectionStatus] = None,
    author_id: Optional[str] = None,
) -> ListingScope:
    """
    Reconcile requested listing filters with the visibility rules.

    Examples:
        anonymous, status=DRAFT, author=X  → empty
        Y,         status=DRAFT, author=X  → empty
        X,         status=DRAFT, author=X  → X's drafts
        anonymous, no filters              → all published
        X,         no filters              → all published + X's drafts
    """
    if principal.is_anonymous:
        if status == ReflectionStatus.DRAFT:
            return ListingScope(empty=True)
        return ListingScope(status=ReflectionStatus.PUBLISHED, author_id=author_id)

    if status == ReflectionStatus.DRAFT:
        if author_id is None or not principal.is_owner_of(author_id):
            return ListingScope(empty=True)
        return ListingScope(status=ReflectionStatus.DRAFT, author_id=author_id)

    if status == ReflectionStatus.PUBLISHED:
        return ListingScope(status=ReflectionStatus.PUBLISHED, author_id=author_id)

    return ListingScope(author_id=author_id, drafts_of=principal.id)


# ══════════════════════════════════════════════════════════════════════════
# Ownership Guard
# ══════════════════════════════════════════════════════════════════════════

def can_mutate(principal: Principal, owner_id: str) -> bool:
    """True iff `principal` is Authenticated(owner_id)."""
    return principal.is_owner_of(owner_id)


def ensure_can_mutate(
    principal: Principal,
    owner_id: str,
    resource: str,
    resource_id: str,
) -> None:
    """
    Raise unless `principal` owns the resource.

    `owner_id` must come from the stored record (the owner projection), never
    from the request body.

    Raises:
        UnauthenticatedError: anonymous principal (401)
        ForbiddenError: authenticated but not the owner (403)
    """
    if principal.is_anonymous:
        raise UnauthenticatedError()
    if not can_mutate(principal, owner_id):
        raise ForbiddenError(resource=resource, resource_id=resource_id)
