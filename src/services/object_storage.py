"""
Blob storage for screenshots.

Files are written under `STORAGE_DIR` and served by the app's `/media`
static mount, so the public URL is `STORAGE_PUBLIC_URL/<key>`.
"""
import asyncio
import logging
from pathlib import Path, PurePosixPath

from core.config import Settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a blob cannot be stored."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        super().__init__(f"Failed to store {key}: {reason}")


class ObjectStorage:
    """Local-filesystem object store with public URLs."""

    def __init__(self, settings: Settings) -> None:
        self.root = Path(settings.storage_dir)
        self.public_url = settings.storage_public_url.rstrip("/")

    def _resolve(self, key: str) -> Path:
        relative = PurePosixPath(key)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise StorageError(key, "invalid key")
        return self.root.joinpath(*relative.parts)

    def public_url_for(self, key: str) -> str:
        """Public URL of a stored key."""
        return f"{self.public_url}/{key}"

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """
        Store `data` under `key` and return its public URL.

        Raises:
            StorageError: If the data is empty, the key is invalid or the write fails.
        """
        if not data:
            raise StorageError(key, "empty body")
        path = self._resolve(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageError(key, str(e)) from e

        logger.info("Stored %s (%s, %s bytes)", key, content_type, len(data))
        return self.public_url_for(key)
