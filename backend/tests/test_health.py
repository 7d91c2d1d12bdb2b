"""
Folio Backend — Health, File Serving & Middleware Tests
=========================================================

What:  /health status matrix, GET /api/files on the local backend, and the
       X-Request-ID round trip.
"""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from folio import __version__
from folio.database import engine
from folio.main import app
from folio.services.storage_service import LocalObjectStorage, get_storage


class TestHealth:
    @pytest.mark.asyncio
    async def test_healthy(self, client):
        try:
            response = await client.get("/health")
        finally:
            await engine.dispose()
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["storage"] == "available"
        assert body["version"] == __version__

    @pytest.mark.asyncio
    async def test_storage_down_is_degraded(self, client, storage, monkeypatch):
        monkeypatch.setattr(storage, "health_check", AsyncMock(return_value=False))
        try:
            response = await client.get("/health")
        finally:
            await engine.dispose()
        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["storage"] == "unavailable"

    @pytest.mark.asyncio
    async def test_database_down_is_unhealthy(self, client, tmp_path, monkeypatch):
        broken = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/missing/dir/db.sqlite")
        monkeypatch.setattr("folio.routes.health.engine", broken)
        try:
            response = await client.get("/health")
        finally:
            await broken.dispose()
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert response.json()["database"] == "disconnected"


class TestRequestId:
    @pytest.mark.asyncio
    async def test_client_request_id_is_echoed(self, client):
        response = await client.get("/api/tags", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client):
        response = await client.get("/api/tags")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, client):
        response = await client.get("/api/albums/missing", headers={"X-Request-ID": "trace-404"})
        assert response.status_code == 404
        assert response.json()["request_id"] == "trace-404"


class TestFileServing:
    @pytest.fixture
    def local_storage(self, client, tmp_path):
        local = LocalObjectStorage(root=str(tmp_path / "objects"), public_base_url="http://test")
        app.dependency_overrides[get_storage] = lambda: local
        return local

    @pytest.mark.asyncio
    async def test_serves_uploaded_object(self, client, local_storage, make_png):
        content = make_png()
        url = await local_storage.upload("albums", "a1/photo.png", content, "image/png")
        assert url == "http://test/api/files/albums/a1/photo.png"

        response = await client.get("/api/files/albums/a1/photo.png")
        assert response.status_code == 200
        assert response.content == content
        assert "max-age" in response.headers["Cache-Control"]

    @pytest.mark.asyncio
    async def test_missing_object_is_404(self, client, local_storage):
        response = await client.get("/api/files/albums/a1/none.png")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_remote_backend_does_not_serve_files(self, client):
        response = await client.get("/api/files/albums/a1/photo.png")
        assert response.status_code == 404
