"""
Folio Backend — ReflectionService Tests
=========================================

What:  Service-level behavior that HTTP tests cannot easily reach, such as
       two writers racing for the same slug.
"""

import pytest

from folio.exceptions import ValidationError
from folio.schemas.reflection import ReflectionCreate, ReflectionUpdate
from folio.security.principal import Principal
from folio.services.reflection_service import ReflectionService


class TestSlugRace:
    @pytest.mark.asyncio
    async def test_unique_violation_on_update_is_slug_validation_error(self, db_session, accounts):
        service = ReflectionService()
        alice = Principal.authenticated(accounts.alice.id)

        await service.create(db_session, alice, ReflectionCreate(title="First", content="a", slug="first"))
        second = await service.create(
            db_session, alice, ReflectionCreate(title="Second", content="b", slug="second")
        )

        # Another writer claims the slug between the availability check and the write
        async def never_taken(db, slug, exclude_id=None):
            return False

        service._slug_taken = never_taken

        with pytest.raises(ValidationError) as exc_info:
            await service.update(db_session, alice, second.id, ReflectionUpdate(slug="first"))
        assert exc_info.value.field == "slug"
        await db_session.rollback()

    @pytest.mark.asyncio
    async def test_unique_violation_on_create_is_slug_validation_error(self, db_session, accounts):
        service = ReflectionService()
        alice = Principal.authenticated(accounts.alice.id)
        await service.create(db_session, alice, ReflectionCreate(title="First", content="a", slug="first"))

        async def never_taken(db, slug, exclude_id=None):
            return False

        service._slug_taken = never_taken

        with pytest.raises(ValidationError) as exc_info:
            await service.create(db_session, alice, ReflectionCreate(title="Other", content="b", slug="first"))
        assert exc_info.value.field == "slug"
        await db_session.rollback()
