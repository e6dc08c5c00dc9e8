"""Image upload endpoint.

Images are stored before the product that uses them; the returned
reference goes into the product's image_path.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, File, Request, UploadFile

from app.api.schemas import ErrorResponse, ImageUploadResponse
from app.images.manager import ImageManager

logger = structlog.get_logger()

router = APIRouter(tags=["Uploads"])


def get_image_manager(request: Request) -> ImageManager:
    """Get the application's image manager."""
    return request.app.state.images


@router.post(
    "/upload",
    response_model=ImageUploadResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Upload product image",
    description=(
        "Store a JPEG, PNG or WebP image. The format is detected from the file bytes; "
        "processed uploads are shrunk to the configured box and stored as JPEG."
    ),
)
async def upload_image(
    image: Annotated[UploadFile, File(description="Image file")],
    images: Annotated[ImageManager, Depends(get_image_manager)],
) -> ImageUploadResponse:
    """Validate and store an uploaded image."""
    # One byte past the ceiling is enough to reject oversized uploads.
    data = await image.read(images.max_size + 1)
    await image.close()

    stored = await images.store(data, image.filename)

    return ImageUploadResponse(
        image_path=stored.reference,
        original_name=image.filename,
        size=stored.size,
        content_type=stored.image_format.content_type,
    )
