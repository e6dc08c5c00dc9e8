"""Image format detection from magic bytes.

Only the leading bytes are inspected; the claimed content type of an upload
is never trusted.
"""

from dataclasses import dataclass
from collections.abc import Iterable

from app.domain.exceptions import ImageValidationError

DEFAULT_MAX_SIZE = 5 * 1024 * 1024


@dataclass(frozen=True)
class ImageFormat:
    """A recognized image format.

    Attributes:
        name: Short name used in settings ("jpeg", "png", "webp").
        extension: File extension for stored objects.
        content_type: MIME type sent to the object store.
    """

    name: str
    extension: str
    content_type: str


JPEG = ImageFormat("jpeg", "jpg", "image/jpeg")
PNG = ImageFormat("png", "png", "image/png")
WEBP = ImageFormat("webp", "webp", "image/webp")

FORMATS = {f.name: f for f in (JPEG, PNG, WEBP)}

_JPEG_SOI = b"\xff\xd8"
_PNG_SIGNATURE = b"\x89PNG"
_RIFF = b"RIFF"
_WEBP = b"WEBP"


def detect_image_format(data: bytes) -> ImageFormat | None:
    """Identify an image format from its first bytes.

    Args:
        data: Raw bytes (only the first 12 are looked at).

    Returns:
        The detected format, or None when no signature matches.
    """
    if data[:2] == _JPEG_SOI:
        return JPEG
    if data[:4] == _PNG_SIGNATURE:
        return PNG
    if len(data) >= 12 and data[:4] == _RIFF and data[8:12] == _WEBP:
        return WEBP
    return None


def validate_image_bytes(
    data: bytes,
    max_size: int = DEFAULT_MAX_SIZE,
    allowed: Iterable[str] = ("jpeg", "png", "webp"),
) -> ImageFormat:
    """Check that a buffer is an acceptable image.

    Args:
        data: Raw upload bytes.
        max_size: Ceiling in bytes.
        allowed: Format names that may be stored.

    Returns:
        The detected format.

    Raises:
        ImageValidationError: If empty, too large, or not an allowed format.
    """
    if not data:
        raise ImageValidationError("Empty image buffer")

    if len(data) > max_size:
        max_mb = max_size / (1024 * 1024)
        raise ImageValidationError(f"Image too large. Maximum size is {max_mb:g}MB")

    image_format = detect_image_format(data)
    allowed_names = {name.lower() for name in allowed}
    if image_format is None or image_format.name not in allowed_names:
        names = ", ".join(sorted(n.upper() for n in allowed_names))
        raise ImageValidationError(f"Unsupported image format. Please use {names}.")

    return image_format
