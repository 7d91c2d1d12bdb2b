"""
Folio Backend — Object Storage
================================

What:  Stores and deletes album image bytes, and hands back public URLs.
Why:   The database only keeps pointers (url + storage_path); the bytes live in
       an object store. Orchestrators talk to the `ObjectStorage` interface so
       the backend can be swapped by configuration.
How:   Two implementations:
         - LocalObjectStorage:    files under STORAGE_ROOT, written with aiofiles,
                                  served back by GET /api/files/{bucket}/{path}
         - SupabaseObjectStorage: Supabase Storage REST API over httpx
Who:   Created once in the lifespan (create_storage), kept on app.state and
       injected into routes with get_storage.

Contract (both backends):
    upload(bucket, path, data, content_type) -> public URL
        Overwrites an existing object at the same path, so a retried upload
        is safe.
    delete(bucket, path)
        Deleting an object that does not exist succeeds.
    Any other failure raises StorageError.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import aiofiles
import httpx
from fastapi import Request

from folio.config import Settings
from folio.exceptions import StorageError

logger = logging.getLogger(__name__)


class ObjectStorage(ABC):
    """Interface every storage backend implements."""

    name: str = "abstract"

    @abstractmethod
    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        """Store `data` at `bucket/path` and return its public URL."""

    @abstractmethod
    async def delete(self, bucket: str, path: str) -> None:
        """Remove the object at `bucket/path`. Missing objects are not an error."""

    @abstractmethod
    async def health_check(self) -> bool:
        """True when the backend is reachable."""

    async def close(self) -> None:
        """Release connections. Called once at shutdown."""
        return None


# ══════════════════════════════════════════════════════════════════════════
# Local filesystem
# ══════════════════════════════════════════════════════════════════════════


class LocalObjectStorage(ObjectStorage):
    """
    Filesystem-backed storage for development and self-hosting.

    Directory Structure:
        storage/
        └── albums/                 ← bucket
            └── <album_id>/
                ├── 1f0c...e2.jpg
                └── 9a4b...71.png
    """

    name = "local"

    def __init__(self, root: str, public_base_url: str):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")
        logger.info("LocalObjectStorage initialized with root=%s", self.root)

    def resolve(self, bucket: str, path: str) -> Path:
        """
        Absolute filesystem path for an object.

        Raises:
            StorageError if the result would escape the storage root.
        """
        target = (self.root / bucket / path).resolve()
        if target == self.root or self.root not in target.parents:
            raise StorageError(
                message="Invalid storage path",
                context={"bucket": bucket, "path": path},
            )
        return target

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/api/files/{bucket}/{path}"

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        target = self.resolve(bucket, path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(data)
        except OSError as e:
            logger.error("Failed to store object %s/%s: %s", bucket, path, e)
            raise StorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"bucket": bucket, "path": path, "os_error": str(e)},
            ) from e

        logger.info("Object stored: %s/%s (%d bytes)", bucket, path, len(data))
        return self.public_url(bucket, path)

    async def delete(self, bucket: str, path: str) -> None:
        target = self.resolve(bucket, path)
        try:
            os.remove(target)
        except FileNotFoundError:
            logger.debug("Delete: object already gone: %s/%s", bucket, path)
            return
        except OSError as e:
            logger.error("Failed to delete object %s/%s: %s", bucket, path, e)
            raise StorageError(
                message="Failed to delete stored image.",
                context={"bucket": bucket, "path": path, "os_error": str(e)},
            ) from e
        logger.info("Object deleted: %s/%s", bucket, path)

    async def health_check(self) -> bool:
        return self.root.is_dir() and os.access(self.root, os.W_OK)


# ══════════════════════════════════════════════════════════════════════════
# Supabase Storage
# ══════════════════════════════════════════════════════════════════════════


class SupabaseObjectStorage(ObjectStorage):
    """
    Supabase Storage over its REST API, authenticated with the service-role key.

    Endpoints used:
        POST   /storage/v1/object/{bucket}/{path}    upload (x-upsert: true)
        DELETE /storage/v1/object/{bucket}           body {"prefixes": [path]}
        GET    /storage/v1/bucket                    health check
    Public URL: {url}/storage/v1/object/public/{bucket}/{path}
    """

    name = "supabase"

    def __init__(
        self,
        url: str,
        service_role_key: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=f"{self.base_url}/storage/v1",
            headers={
                "Authorization": f"Bearer {service_role_key}",
                "apikey": service_role_key,
            },
            timeout=timeout,
        )
        logger.info("SupabaseObjectStorage initialized for %s", self.base_url)

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{path}"

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        try:
            response = await self._client.post(
                f"/object/{bucket}/{path}",
                content=data,
                headers={"Content-Type": content_type, "x-upsert": "true"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Supabase upload failed for %s/%s: %s", bucket, path, e)
            raise StorageError(
                message="Failed to upload image to storage. Please try again.",
                context={"bucket": bucket, "path": path, "error": str(e)},
            ) from e

        logger.info("Object uploaded: %s/%s (%d bytes)", bucket, path, len(data))
        return self.public_url(bucket, path)

    async def delete(self, bucket: str, path: str) -> None:
        # Supabase answers 200 with an empty list when nothing matched
        try:
            response = await self._client.request(
                "DELETE",
                f"/object/{bucket}",
                json={"prefixes": [path]},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Supabase delete failed for %s/%s: %s", bucket, path, e)
            raise StorageError(
                message="Failed to delete stored image.",
                context={"bucket": bucket, "path": path, "error": str(e)},
            ) from e
        logger.info("Object deleted: %s/%s", bucket, path)

    async def health_check(self) -> bool:
        try:
            response = await self._client.get("/bucket")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning("Supabase storage health check failed: %s", e)
            return False

    async def close(self) -> None:
        await self._client.aclose()


# ══════════════════════════════════════════════════════════════════════════
# Wiring
# ══════════════════════════════════════════════════════════════════════════


def create_storage(config: Settings) -> ObjectStorage:
    """Build the backend selected by STORAGE_BACKEND."""
    if config.storage_backend == "supabase":
        return SupabaseObjectStorage(
            url=config.supabase_url,
            service_role_key=config.supabase_service_role_key,
            timeout=config.storage_timeout_seconds,
        )
    return LocalObjectStorage(root=config.storage_root, public_base_url=config.public_base_url)


def get_storage(request: Request) -> ObjectStorage:
    """FastAPI dependency: the process-wide storage opened in the lifespan."""
    return request.app.state.storage
