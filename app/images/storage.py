"""Image storage backends.

A backend turns an object key into a public reference and back. Only
references under the backend's own public prefix are considered managed;
everything else is foreign and must never be deleted.
"""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Protocol

import structlog

from app.domain.exceptions import ImageStorageError
from app.infrastructure.blob_client import BlobClient

logger = structlog.get_logger()


class ImageStorage(Protocol):
    """Interface implemented by storage backends."""

    def owns(self, reference: str) -> bool:
        """Check whether a reference lives in this backend's namespace."""
        ...

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Store bytes under a key and return the public reference."""
        ...

    async def delete(self, reference: str) -> None:
        """Delete the object behind a managed reference (idempotent)."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        ...


class _PrefixedReferences:
    """Maps keys to references under a fixed public prefix."""

    def __init__(self, public_base_url: str) -> None:
        self.public_base_url = public_base_url.rstrip("/")

    def reference_for(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def key_for(self, reference: str) -> str | None:
        """Get the key of a managed reference, or None if foreign."""
        if not isinstance(reference, str):
            return None
        prefix = f"{self.public_base_url}/"
        if not reference.startswith(prefix):
            return None
        key = reference[len(prefix):].split("?", 1)[0].split("#", 1)[0]
        parts = key.split("/")
        if not key or any(part in ("", ".", "..") for part in parts):
            return None
        return key

    def owns(self, reference: str) -> bool:
        return self.key_for(reference) is not None


class LocalImageStorage(_PrefixedReferences):
    """Stores images as files under a directory served as static files.

    Example usage:
        storage = LocalImageStorage("./media", "/media")
        ref = await storage.put("products/img_1.jpg", data, "image/jpeg")
        # ref == "/media/products/img_1.jpg"
    """

    def __init__(self, root_dir: str | Path, public_base_url: str = "/media") -> None:
        """Initialize local storage.

        Args:
            root_dir: Directory holding stored objects.
            public_base_url: URL prefix the directory is served under.
        """
        super().__init__(public_base_url)
        self.root_dir = Path(root_dir)

    def _path_for(self, key: str) -> Path:
        return self.root_dir.joinpath(*key.split("/"))

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".upload-")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """Write the object atomically and return its reference."""
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            raise ImageStorageError(
                f"Failed to write image: {e}", details={"key": key}
            ) from e
        return self.reference_for(key)

    async def delete(self, reference: str) -> None:
        """Remove the file; a missing file is fine."""
        key = self.key_for(reference)
        if key is None:
            return
        try:
            await asyncio.to_thread(self._path_for(key).unlink, missing_ok=True)
        except OSError as e:
            raise ImageStorageError(
                f"Failed to delete image: {e}", details={"key": key}
            ) from e

    async def close(self) -> None:
        return None


class BlobImageStorage(_PrefixedReferences):
    """Stores images in the remote object store.

    Example usage:
        client = BlobClient(settings.blob_api_url, settings.blob_read_write_token)
        storage = BlobImageStorage(client, "https://cdn.example.com")
    """

    def __init__(self, client: BlobClient, public_base_url: str) -> None:
        """Initialize blob storage.

        Args:
            client: Object store client.
            public_base_url: Public prefix objects are served from.
        """
        super().__init__(public_base_url)
        self.client = client

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        await self.client.put(key, data, content_type)
        return self.reference_for(key)

    async def delete(self, reference: str) -> None:
        key = self.key_for(reference)
        if key is None:
            return
        await self.client.delete(key)

    async def close(self) -> None:
        await self.client.close()
