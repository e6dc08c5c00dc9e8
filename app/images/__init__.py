"""Product image lifecycle: validation, processing, storage and removal."""

from app.images.manager import ImageManager, StoredImage, sanitize_hint
from app.images.processing import ImageProcessor, ProcessedImage
from app.images.signatures import FORMATS, ImageFormat, detect_image_format, validate_image_bytes
from app.images.storage import BlobImageStorage, ImageStorage, LocalImageStorage

__all__ = [
    "BlobImageStorage",
    "FORMATS",
    "ImageFormat",
    "ImageManager",
    "ImageProcessor",
    "ImageStorage",
    "LocalImageStorage",
    "ProcessedImage",
    "StoredImage",
    "detect_image_format",
    "sanitize_hint",
    "validate_image_bytes",
]
