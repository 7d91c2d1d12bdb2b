"""
Folio Backend — ORM Models
============================

Importing this package registers every table with `Base.metadata`, which is
what Alembic autogenerate and the test schema builder read.
"""

from folio.models.album import Album, Image
from folio.models.reflection import Reflection, ReflectionStatus, ReflectionTag, Tag
from folio.models.user import AuthSession, User

__all__ = [
    "Album",
    "AuthSession",
    "Image",
    "Reflection",
    "ReflectionStatus",
    "ReflectionTag",
    "Tag",
    "User",
]
