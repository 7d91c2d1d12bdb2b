"""
Folio Backend — Request Principal
===================================

What:  The caller identity for a single request: anonymous, or an account id.
Why:   Every authorization decision in the policies takes a Principal, never raw
       request data, so the rules can be tested without HTTP.
Who:   Produced by the Identity Resolver; consumed by policies and services.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Principal:
    """
    Either `Principal.anonymous()` or `Principal.authenticated(user_id)`.

    Immutable: a request's identity never changes once resolved.
    """

    id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.id is not None

    @property
    def is_anonymous(self) -> bool:
        return self.id is None

    def is_owner_of(self, owner_id: Optional[str]) -> bool:
        """True only for an authenticated principal whose id matches `owner_id`."""
        return self.id is not None and owner_id is not None and self.id == owner_id

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls(id=None)

    @classmethod
    def authenticated(cls, user_id: str) -> "Principal":
        if not user_id:
            raise ValueError("An authenticated principal needs a non-empty id")
        return cls(id=user_id)
