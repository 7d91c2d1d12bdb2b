"""Tag catalogue endpoints."""

import pytest


class TestTags:
    @pytest.mark.asyncio
    async def test_create_and_list(self, client, accounts):
        for name in ("Travel", "Food"):
            response = await client.post("/api/tags/create", json={"name": name}, headers=accounts.alice.headers)
            assert response.status_code == 201

        listing = await client.get("/api/tags")
        assert listing.status_code == 200
        assert [(t["name"], t["slug"]) for t in listing.json()] == [("Food", "food"), ("Travel", "travel")]

    @pytest.mark.asyncio
    async def test_slug_derived_and_explicit(self, client, accounts):
        derived = await client.post(
            "/api/tags/create", json={"name": "Street Photography"}, headers=accounts.alice.headers
        )
        assert derived.json()["slug"] == "street-photography"

        explicit = await client.post(
            "/api/tags/create", json={"name": "B&W", "slug": "black and white"}, headers=accounts.alice.headers
        )
        assert explicit.json()["slug"] == "black-and-white"

    @pytest.mark.asyncio
    async def test_duplicate_name_is_400(self, client, accounts):
        await client.post("/api/tags/create", json={"name": "Travel"}, headers=accounts.alice.headers)
        response = await client.post("/api/tags/create", json={"name": "Travel"}, headers=accounts.bob.headers)
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "name"

    @pytest.mark.asyncio
    async def test_name_without_letters_is_400(self, client, accounts):
        response = await client.post("/api/tags/create", json={"name": "!!!"}, headers=accounts.alice.headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_requires_auth(self, client, accounts):
        response = await client.post("/api/tags/create", json={"name": "Travel"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_list_is_public_and_empty_by_default(self, client, accounts):
        response = await client.get("/api/tags")
        assert response.status_code == 200
        assert response.json() == []
