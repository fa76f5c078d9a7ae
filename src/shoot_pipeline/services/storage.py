"""Blob storage port."""

from typing import Protocol

from shoot_pipeline.domain.results import StorageResult


class BlobStorage(Protocol):
    """Key-value blob store. Calls report failures instead of raising."""

    async def upload(
        self, path: str, data: bytes, content_type: str
    ) -> StorageResult[None]:
        """Store bytes under a key."""

    async def download(self, path: str) -> StorageResult[bytes]:
        """Fetch the bytes stored under a key."""

    async def list(self, prefix: str) -> StorageResult[list[str]]:
        """List keys starting with a prefix."""

    async def delete(self, path: str) -> StorageResult[None]:
        """Remove a key."""
