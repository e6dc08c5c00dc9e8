"""Tests for image decoding and re-encoding."""

import io
from collections.abc import Callable

import pytest
from PIL import Image

from app.domain.exceptions import ImageValidationError
from app.images.processing import ImageProcessor
from app.images.signatures import FORMATS


def decode(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


class TestProcess:
    """Tests for the decode, resize and re-encode pipeline."""

    @pytest.mark.parametrize("fixture", ["png_bytes", "jpeg_bytes", "webp_bytes"])
    def test_output_is_jpeg(self, fixture: str, request: pytest.FixtureRequest) -> None:
        """Every accepted format is re-encoded as JPEG."""
        data = request.getfixturevalue(fixture)

        processed = ImageProcessor().process(data)

        assert processed.image_format == FORMATS["jpeg"]
        assert processed.data[:2] == b"\xff\xd8"
        assert decode(processed.data).format == "JPEG"

    def test_small_images_are_not_enlarged(self, png_bytes: bytes) -> None:
        """Images inside the box keep their size."""
        processed = ImageProcessor().process(png_bytes)
        assert (processed.width, processed.height) == (20, 20)
        assert decode(processed.data).size == (20, 20)

    def test_large_images_shrink_to_fit(self, make_image: Callable[..., bytes]) -> None:
        """The longer side is brought down to the box, keeping the aspect ratio."""
        data = make_image("PNG", size=(2400, 600))

        processed = ImageProcessor(target_size=1200).process(data)

        assert (processed.width, processed.height) == (1200, 300)
        assert decode(processed.data).size == (1200, 300)

    def test_transparency_is_flattened(self, make_image: Callable[..., bytes]) -> None:
        """Images with an alpha channel are stored as RGB JPEG."""
        data = make_image("PNG", size=(30, 30), mode="RGBA")

        processed = ImageProcessor().process(data)

        assert decode(processed.data).mode == "RGB"

    def test_quality_setting_is_applied(self, make_image: Callable[..., bytes]) -> None:
        """Lower quality never produces a larger file."""
        data = make_image("PNG", size=(200, 200))

        high = ImageProcessor(quality=95).process(data)
        low = ImageProcessor(quality=10).process(data)

        assert len(low.data) <= len(high.data)


class TestDimensionLimits:
    """Tests for pixel limits."""

    def test_too_small(self, make_image: Callable[..., bytes]) -> None:
        """Images under the minimum on either side are rejected."""
        data = make_image("PNG", size=(9, 40))

        with pytest.raises(ImageValidationError) as exc_info:
            ImageProcessor().process(data)
        assert exc_info.value.field == "image"
        assert exc_info.value.reason == (
            "Image dimensions too small. Minimum size is 10x10 pixels."
        )

    def test_minimum_is_accepted(self, make_image: Callable[..., bytes]) -> None:
        """Exactly the minimum passes."""
        data = make_image("PNG", size=(10, 10))
        assert ImageProcessor().process(data).width == 10

    def test_too_large(self, make_image: Callable[..., bytes]) -> None:
        """Images over the maximum on either side are rejected."""
        data = make_image("PNG", size=(10001, 10), mode="L")

        with pytest.raises(ImageValidationError) as exc_info:
            ImageProcessor().process(data)
        assert exc_info.value.reason == (
            "Image dimensions too large. Maximum size is 10000x10000 pixels."
        )

    def test_custom_limits(self, make_image: Callable[..., bytes]) -> None:
        """Limits come from the constructor."""
        processor = ImageProcessor(min_dimension=50, max_dimension=100)

        with pytest.raises(ImageValidationError):
            processor.process(make_image("PNG", size=(40, 60)))
        with pytest.raises(ImageValidationError):
            processor.process(make_image("PNG", size=(60, 101)))
        assert processor.process(make_image("PNG", size=(60, 100))).height == 100


class TestUndecodable:
    """Tests for bytes that pass the signature check but do not decode."""

    @pytest.mark.parametrize(
        "data",
        [
            b"\x89PNG\r\n\x1a\n" + b"\x00" * 32,
            b"\xff\xd8\xff\xe0" + b"\x00" * 32,
            b"RIFF\x24\x00\x00\x00WEBPVP8 " + b"\x00" * 24,
        ],
    )
    def test_garbage_after_signature(self, data: bytes) -> None:
        """A valid signature alone is not enough."""
        with pytest.raises(ImageValidationError) as exc_info:
            ImageProcessor().process(data)
        assert exc_info.value.reason == (
            "Failed to process image. Please try a different image file."
        )

    def test_truncated_image(self, make_image: Callable[..., bytes]) -> None:
        """A cut-off file is rejected rather than stored half-decoded."""
        data = make_image("PNG", size=(200, 200))

        with pytest.raises(ImageValidationError):
            ImageProcessor().process(data[: len(data) // 2])

    def test_unaccepted_decoder(self, make_image: Callable[..., bytes]) -> None:
        """Formats outside JPEG, PNG and WebP are never decoded."""
        with pytest.raises(ImageValidationError):
            ImageProcessor().process(make_image("GIF", size=(20, 20), mode="L"))
