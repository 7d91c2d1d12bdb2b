"""Slug derivation and disambiguation."""

import pytest

from folio.services.slugs import MAX_SUFFIX, create_slug, unique_slug


class TestCreateSlug:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Hello World", "hello-world"),
            ("  Spring -- in Kyoto!  ", "spring-in-kyoto"),
            ("Café au lait", "caf-au-lait"),
            ("already-a-slug", "already-a-slug"),
            ("Tabs\tand\nnewlines", "tabs-and-newlines"),
            ("snake_case stays", "snake_case-stays"),
            ("!!!", ""),
        ],
    )
    def test_create_slug(self, text, expected):
        assert create_slug(text) == expected


class TestUniqueSlug:
    @pytest.mark.asyncio
    async def test_free_base_is_used(self):
        async def is_taken(slug):
            return False

        assert await unique_slug("hello-world", is_taken) == "hello-world"

    @pytest.mark.asyncio
    async def test_taken_base_gets_suffix(self):
        taken = {"hello-world", "hello-world-2"}

        async def is_taken(slug):
            return slug in taken

        assert await unique_slug("hello-world", is_taken) == "hello-world-3"

    @pytest.mark.asyncio
    async def test_gives_up_after_max_suffix(self):
        async def is_taken(slug):
            return True

        with pytest.raises(ValueError):
            await unique_slug("busy", is_taken)
        assert MAX_SUFFIX >= 2
