"""Blob storage backed by a Supabase Storage bucket."""

import asyncio
import logging
from dataclasses import dataclass

from supabase import Client

from shoot_pipeline.domain.results import StorageResult
from shoot_pipeline.services.storage import BlobStorage

logger = logging.getLogger(__name__)


@dataclass
class SupabaseBlobStorage(BlobStorage):
    """Runs the synchronous storage client off the event loop."""

    client: Client
    bucket: str

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    async def upload(
        self, path: str, data: bytes, content_type: str
    ) -> StorageResult[None]:
        """Store bytes under a key, replacing any previous object."""
        try:
            await asyncio.to_thread(
                self._bucket().upload,
                path,
                data,
                {"content-type": content_type, "upsert": "true"},
            )
        except Exception as exc:
            logger.warning("Storage upload failed for %s: %s", path, exc)
            return StorageResult.failure(str(exc))
        return StorageResult.success()

    async def download(self, path: str) -> StorageResult[bytes]:
        """Fetch the bytes stored under a key."""
        try:
            data = await asyncio.to_thread(self._bucket().download, path)
        except Exception as exc:
            logger.warning("Storage download failed for %s: %s", path, exc)
            return StorageResult.failure(str(exc))
        return StorageResult.success(data)

    async def list(self, prefix: str) -> StorageResult[list[str]]:
        """List keys directly under a folder prefix."""
        folder = prefix.rstrip("/")
        try:
            items = await asyncio.to_thread(self._bucket().list, folder)
        except Exception as exc:
            logger.warning("Storage list failed for %s: %s", prefix, exc)
            return StorageResult.failure(str(exc))
        return StorageResult.success([f"{folder}/{item['name']}" for item in items])

    async def delete(self, path: str) -> StorageResult[None]:
        """Remove a key."""
        try:
            await asyncio.to_thread(self._bucket().remove, [path])
        except Exception as exc:
            logger.warning("Storage delete failed for %s: %s", path, exc)
            return StorageResult.failure(str(exc))
        return StorageResult.success()
