"""Image decoding and re-encoding.

Uploads that pass the signature check are decoded with Pillow, checked
against pixel limits, shrunk to fit a square box (never enlarged) and
re-encoded as progressive JPEG.
"""

import io
from dataclasses import dataclass

import structlog
from PIL import Image, UnidentifiedImageError

from app.domain.exceptions import ImageValidationError
from app.images.signatures import JPEG, ImageFormat

logger = structlog.get_logger()

DEFAULT_MIN_DIMENSION = 10
DEFAULT_MAX_DIMENSION = 10000
DEFAULT_TARGET_SIZE = 1200
DEFAULT_QUALITY = 80

DECODABLE_FORMATS = ("JPEG", "PNG", "WEBP")

UNREADABLE_MESSAGE = "Failed to process image. Please try a different image file."


@dataclass(frozen=True)
class ProcessedImage:
    """Re-encoded image ready for storage.

    Attributes:
        data: Encoded bytes.
        image_format: Format of ``data``.
        width: Width in pixels after resizing.
        height: Height in pixels after resizing.
    """

    data: bytes
    image_format: ImageFormat
    width: int
    height: int


class ImageProcessor:
    """Decodes, checks and re-encodes uploaded images.

    Example usage:
        processor = ImageProcessor(target_size=1200, quality=80)
        processed = processor.process(data)
        await storage.put(key, processed.data, processed.image_format.content_type)
    """

    def __init__(
        self,
        min_dimension: int = DEFAULT_MIN_DIMENSION,
        max_dimension: int = DEFAULT_MAX_DIMENSION,
        target_size: int = DEFAULT_TARGET_SIZE,
        quality: int = DEFAULT_QUALITY,
    ) -> None:
        """Initialize processor.

        Args:
            min_dimension: Smallest accepted width and height.
            max_dimension: Largest accepted width and height.
            target_size: Bounding box edge the output is shrunk to fit.
            quality: JPEG quality (1-95).
        """
        self.min_dimension = min_dimension
        self.max_dimension = max_dimension
        self.target_size = target_size
        self.quality = quality

    def check_dimensions(self, width: int, height: int) -> None:
        """Reject images outside the pixel limits.

        Raises:
            ImageValidationError: If either side is too small or too large.
        """
        if width < self.min_dimension or height < self.min_dimension:
            raise ImageValidationError(
                "Image dimensions too small. Minimum size is "
                f"{self.min_dimension}x{self.min_dimension} pixels."
            )
        if width > self.max_dimension or height > self.max_dimension:
            raise ImageValidationError(
                "Image dimensions too large. Maximum size is "
                f"{self.max_dimension}x{self.max_dimension} pixels."
            )

    def process(self, data: bytes) -> ProcessedImage:
        """Decode, check and re-encode an image.

        Blocking; run it in a worker thread from async code.

        Args:
            data: Upload bytes that already passed the signature check.

        Returns:
            The re-encoded JPEG.

        Raises:
            ImageValidationError: If the bytes cannot be decoded or the
                dimensions are out of bounds.
        """
        image = self._open(data)
        with image:
            # Header only; pixels are not decoded until the limits pass.
            self.check_dimensions(*image.size)
            try:
                rendered = self._render(image)
            except (OSError, ValueError) as e:
                logger.warning("Image decoding failed", error=str(e))
                raise ImageValidationError(UNREADABLE_MESSAGE) from e
        return rendered

    def _open(self, data: bytes) -> Image.Image:
        try:
            return Image.open(io.BytesIO(data), formats=DECODABLE_FORMATS)
        except Image.DecompressionBombError as e:
            raise ImageValidationError(
                "Image dimensions too large. Maximum size is "
                f"{self.max_dimension}x{self.max_dimension} pixels."
            ) from e
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning("Image could not be identified", error=str(e))
            raise ImageValidationError(UNREADABLE_MESSAGE) from e

    def _render(self, image: Image.Image) -> ProcessedImage:
        # JPEG has no alpha channel or palette
        output = image.convert("RGB")
        output.thumbnail(
            (self.target_size, self.target_size), Image.Resampling.LANCZOS
        )

        buffer = io.BytesIO()
        output.save(
            buffer,
            format="JPEG",
            quality=self.quality,
            optimize=True,
            progressive=True,
        )
        return ProcessedImage(
            data=buffer.getvalue(),
            image_format=JPEG,
            width=output.width,
            height=output.height,
        )
