"""
Folio Backend — Object Storage Tests
======================================

What:  LocalObjectStorage against a temporary directory, and
       SupabaseObjectStorage against an httpx MockTransport.
"""

import json

import httpx
import pytest

from folio.config import Settings
from folio.exceptions import StorageError
from folio.services.storage_service import (
    LocalObjectStorage,
    SupabaseObjectStorage,
    create_storage,
)


class TestLocalObjectStorage:
    @pytest.fixture
    def local(self, tmp_path):
        return LocalObjectStorage(root=str(tmp_path / "storage"), public_base_url="http://api.test/")

    @pytest.mark.asyncio
    async def test_upload_writes_file_and_returns_url(self, local):
        url = await local.upload("albums", "a1/photo.png", b"bytes", "image/png")
        assert url == "http://api.test/api/files/albums/a1/photo.png"
        assert local.resolve("albums", "a1/photo.png").read_bytes() == b"bytes"

    @pytest.mark.asyncio
    async def test_upload_overwrites(self, local):
        await local.upload("albums", "a1/photo.png", b"one", "image/png")
        await local.upload("albums", "a1/photo.png", b"two", "image/png")
        assert local.resolve("albums", "a1/photo.png").read_bytes() == b"two"

    @pytest.mark.asyncio
    async def test_delete_removes_file(self, local):
        await local.upload("albums", "a1/photo.png", b"bytes", "image/png")
        await local.delete("albums", "a1/photo.png")
        assert not local.resolve("albums", "a1/photo.png").exists()

    @pytest.mark.asyncio
    async def test_delete_missing_object_succeeds(self, local):
        await local.delete("albums", "never/uploaded.png")

    def test_path_traversal_rejected(self, local):
        with pytest.raises(StorageError):
            local.resolve("albums", "../../etc/passwd")

    @pytest.mark.asyncio
    async def test_health_check(self, local):
        assert await local.health_check() is True


class TestSupabaseObjectStorage:
    def _storage(self, handler):
        client = httpx.AsyncClient(
            base_url="https://project.supabase.co/storage/v1",
            transport=httpx.MockTransport(handler),
        )
        return SupabaseObjectStorage(
            url="https://project.supabase.co",
            service_role_key="service-key",
            client=client,
        )

    @pytest.mark.asyncio
    async def test_upload_posts_with_upsert(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["upsert"] = request.headers.get("x-upsert")
            seen["content_type"] = request.headers.get("content-type")
            return httpx.Response(200, json={"Key": "albums/a1/p.png"})

        storage = self._storage(handler)
        url = await storage.upload("albums", "a1/p.png", b"png", "image/png")

        assert url == "https://project.supabase.co/storage/v1/object/public/albums/a1/p.png"
        assert seen == {
            "method": "POST",
            "path": "/storage/v1/object/albums/a1/p.png",
            "upsert": "true",
            "content_type": "image/png",
        }
        await storage.close()

    @pytest.mark.asyncio
    async def test_upload_failure_raises_storage_error(self):
        storage = self._storage(lambda request: httpx.Response(500, json={"error": "boom"}))
        with pytest.raises(StorageError):
            await storage.upload("albums", "a1/p.png", b"png", "image/png")
        await storage.close()

    @pytest.mark.asyncio
    async def test_delete_sends_prefixes(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=[])

        storage = self._storage(handler)
        await storage.delete("albums", "a1/p.png")

        assert seen == {
            "method": "DELETE",
            "path": "/storage/v1/object/albums",
            "body": {"prefixes": ["a1/p.png"]},
        }
        await storage.close()

    @pytest.mark.asyncio
    async def test_delete_failure_raises_storage_error(self):
        storage = self._storage(lambda request: httpx.Response(403, json={"error": "denied"}))
        with pytest.raises(StorageError):
            await storage.delete("albums", "a1/p.png")
        await storage.close()

    @pytest.mark.asyncio
    async def test_health_check_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        storage = self._storage(handler)
        assert await storage.health_check() is False
        await storage.close()


class TestCreateStorage:
    def test_local_by_default(self, tmp_path):
        storage = create_storage(Settings(storage_backend="local", storage_root=str(tmp_path)))
        assert isinstance(storage, LocalObjectStorage)

    @pytest.mark.asyncio
    async def test_supabase_selected(self):
        storage = create_storage(
            Settings(
                storage_backend="supabase",
                supabase_url="https://project.supabase.co",
                supabase_service_role_key="key",
            )
        )
        assert isinstance(storage, SupabaseObjectStorage)
        await storage.close()

    def test_supabase_requires_credentials(self):
        with pytest.raises(ValueError, match="SUPABASE_URL"):
            Settings(storage_backend="supabase").validate_required_for_production()
