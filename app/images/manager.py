"""Image lifecycle management.

Validates uploads, stores them under unguessable keys, and removes them when
the product that referenced them goes away. Storing is never atomic with the
product row: an image is stored first and its reference handed to the
product write; removal is best-effort cleanup that never fails its caller.
"""

import asyncio
import re
import secrets
import time
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from app.domain.exceptions import InfrastructureError
from app.images.processing import ImageProcessor
from app.images.signatures import DEFAULT_MAX_SIZE, ImageFormat, validate_image_bytes
from app.images.storage import BlobImageStorage, ImageStorage, LocalImageStorage
from app.infrastructure.blob_client import BlobClient
from app.infrastructure.config import Settings

logger = structlog.get_logger()

MAX_HINT_LENGTH = 40
DEFAULT_HINT = "img"

_HINT_JUNK = re.compile(r"[^a-z0-9-]+")


def sanitize_hint(hint: str | None) -> str:
    """Reduce a caller-supplied name to a safe key fragment.

    Args:
        hint: Suggested name, e.g. the uploaded file name.

    Returns:
        Lowercase ``[a-z0-9-]`` text, at most 40 characters, never empty.
    """
    if not hint:
        return DEFAULT_HINT
    stem = hint.rsplit(".", 1)[0] if "." in hint else hint
    cleaned = _HINT_JUNK.sub("-", stem.lower()).strip("-")
    return cleaned[:MAX_HINT_LENGTH].strip("-") or DEFAULT_HINT


@dataclass(frozen=True)
class StoredImage:
    """Result of storing an image.

    Attributes:
        reference: Public reference to put in a product's image_path.
        image_format: Format of the stored bytes.
        size: Stored size in bytes.
    """

    reference: str
    image_format: ImageFormat
    size: int


class ImageManager:
    """Validates, stores and removes product images.

    Example usage:
        manager = ImageManager(
            LocalImageStorage("./media"),
            max_size=5 * 1024 * 1024,
            processor=ImageProcessor(),
        )
        stored = await manager.store(data, "steel-rod.png")
        await manager.remove(stored.reference)
    """

    def __init__(
        self,
        storage: ImageStorage,
        max_size: int = DEFAULT_MAX_SIZE,
        allowed_formats: Iterable[str] = ("jpeg", "png", "webp"),
        key_prefix: str = "products",
        processor: ImageProcessor | None = None,
    ) -> None:
        """Initialize manager.

        Args:
            storage: Storage backend.
            max_size: Upload ceiling in bytes.
            allowed_formats: Accepted format names.
            key_prefix: Folder prefix for stored objects.
            processor: Decoder/re-encoder applied before storing. Without
                one, bytes are stored unmodified.
        """
        self.storage = storage
        self.max_size = max_size
        self.allowed_formats = tuple(f.lower() for f in allowed_formats)
        self.key_prefix = key_prefix.strip("/")
        self.processor = processor

    def validate(self, data: bytes) -> ImageFormat:
        """Check an upload by its bytes.

        Raises:
            ImageValidationError: If empty, oversized or unrecognized.
        """
        return validate_image_bytes(data, self.max_size, self.allowed_formats)

    def make_key(self, image_format: ImageFormat, hint: str | None = None) -> str:
        """Build a unique object key from a timestamp and random suffix."""
        timestamp = time.time_ns() // 1_000_000
        suffix = secrets.token_hex(4)
        name = f"{sanitize_hint(hint)}_{timestamp}_{suffix}.{image_format.extension}"
        return f"{self.key_prefix}/{name}" if self.key_prefix else name

    async def store(self, data: bytes, hint: str | None = None) -> StoredImage:
        """Validate, process and persist an image.

        Processing runs in a worker thread. The backend write is shielded
        from cancellation so an upload that was already issued completes
        instead of leaving a partial object.

        Args:
            data: Image bytes as uploaded.
            hint: Suggested name used as a readable key fragment.

        Returns:
            Reference, format and size of the stored object.

        Raises:
            ImageValidationError: If the bytes are not an acceptable image.
            InfrastructureError: If the backend failed.
        """
        image_format = self.validate(data)
        if self.processor is not None:
            processed = await asyncio.to_thread(self.processor.process, data)
            logger.info(
                "Image processed",
                original_size=len(data),
                size=len(processed.data),
                width=processed.width,
                height=processed.height,
            )
            data, image_format = processed.data, processed.image_format

        key = self.make_key(image_format, hint)

        try:
            reference = await asyncio.shield(
                self.storage.put(key, data, image_format.content_type)
            )
        except InfrastructureError:
            logger.exception("Image upload failed", key=key, size=len(data))
            raise

        logger.info(
            "Image stored",
            reference=reference,
            format=image_format.name,
            size=len(data),
        )
        return StoredImage(reference=reference, image_format=image_format, size=len(data))

    def is_managed(self, reference: str | None) -> bool:
        """Check whether a reference belongs to the managed store."""
        return bool(reference) and self.storage.owns(reference)

    async def remove(self, reference: str | None) -> bool:
        """Delete a stored image, best-effort.

        Foreign or empty references are ignored. Failures are logged and
        swallowed; the product row is the record of truth.

        Args:
            reference: Image reference previously returned by store().

        Returns:
            True if a delete was issued and succeeded.
        """
        if not self.is_managed(reference):
            if reference:
                logger.info("Skipping removal of unmanaged image", reference=reference)
            return False

        try:
            await self.storage.delete(reference)
        except Exception as e:
            logger.warning(
                "Failed to remove image, leaving orphan",
                reference=reference,
                error=str(e),
            )
            return False

        logger.info("Image removed", reference=reference)
        return True

    async def close(self) -> None:
        await self.storage.close()

    @classmethod
    def from_settings(cls, config: Settings) -> "ImageManager":
        """Build a manager for the configured storage backend.

        Args:
            config: Application settings.

        Returns:
            ImageManager wired to local or blob storage.
        """
        storage: ImageStorage
        if config.image_storage_backend == "blob":
            client = BlobClient(
                config.blob_api_url,
                config.blob_read_write_token,
                timeout=config.blob_timeout_seconds,
            )
            storage = BlobImageStorage(
                client, config.blob_public_base_url or config.blob_api_url
            )
        else:
            storage = LocalImageStorage(
                config.image_storage_dir, config.image_public_base_url
            )

        processor = None
        if config.image_processing_enabled:
            processor = ImageProcessor(
                min_dimension=config.image_min_dimension,
                max_dimension=config.image_max_dimension,
                target_size=config.image_target_size,
                quality=config.image_jpeg_quality,
            )

        return cls(
            storage,
            max_size=config.max_upload_size,
            allowed_formats=config.allowed_image_formats,
            key_prefix=config.image_key_prefix,
            processor=processor,
        )
