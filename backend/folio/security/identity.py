"""
Folio Backend — Identity Resolver
===================================

What:  Turns request credentials into a Principal.
Why:   Sessions are issued by the external auth provider; this module only
       reads them. It never writes, refreshes, or revokes anything.
How:   Takes the session token from `Authorization: Bearer <token>` or from the
       auth provider's session cookie, looks it up in the `session` table, and
       returns Authenticated(user_id) for a live session, Anonymous otherwise.
Who:   Injected into every route through FastAPI dependencies.

Cookie format:
    The auth provider signs its cookie as `<token>.<signature>`. Tokens never
    contain a dot, so everything before the first dot is the token.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from folio.config import settings
from folio.database import get_db_session
from folio.exceptions import UnauthenticatedError
from folio.models.user import AuthSession
from folio.security.principal import Principal

logger = logging.getLogger(__name__)


def extract_session_token(request: Request) -> Optional[str]:
    """Return the presented session token, bearer header first, then cookie."""
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()

    cookie = request.cookies.get(settings.session_cookie_name)
    if cookie:
        token = cookie.split(".", 1)[0]
        return token or None
    return None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def resolve_principal(db: AsyncSession, token: Optional[str]) -> Principal:
    """
    Look up a session token and return the principal it belongs to.

    Unknown and expired tokens resolve to Anonymous rather than raising:
    optional-auth routes must keep working for signed-out visitors.
    """
    if not token:
        return Principal.anonymous()

    result = await db.execute(
        select(AuthSession.user_id, AuthSession.expires_at).where(AuthSession.token == token)
    )
    row = result.one_or_none()
    if row is None:
        logger.debug("Session token not recognised")
        return Principal.anonymous()

    user_id, expires_at = row
    if _as_utc(expires_at) <= datetime.now(timezone.utc):
        logger.debug("Session for user %s has expired", user_id)
        return Principal.anonymous()

    return Principal.authenticated(user_id)


# ── FastAPI Dependencies ──────────────────────────────────────────────────

async def get_principal(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Principal:
    """Optional auth: Anonymous when no valid session is presented."""
    principal = await resolve_principal(db, extract_session_token(request))
    request.state.principal = principal
    return principal


async def require_principal(
    principal: Principal = Depends(get_principal),
) -> Principal:
    """Required auth: 401 for anonymous callers."""
    if principal.is_anonymous:
        raise UnauthenticatedError()
    return principal
