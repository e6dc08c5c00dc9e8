"""API schemas for the catalog API.

Pydantic models for request/response validation and serialization. Request
models only check shapes; field rules live in the catalog service so they
apply to every caller, not just HTTP.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.domain.entities import Product


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = Field(default=None, description="Field that caused the error")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: list[ErrorDetail] = Field(
        default_factory=list, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


# ============================================================================
# Product Schemas
# ============================================================================


class ProductCreateRequest(BaseModel):
    """Request to create a product."""

    model_config = ConfigDict(extra="forbid")

    name: Any = Field(default=None, description="Product name (1-100 characters)")
    price: Any = Field(default=None, description="Price between 0 and 1,000,000")
    min_order_qty: Any = Field(
        default=None, description="Minimum order, free text (e.g. '1 dozen')"
    )
    image_path: str | None = Field(
        default=None, description="Reference returned by POST /upload"
    )


class ProductUpdateRequest(BaseModel):
    """Partial update; only supplied fields change."""

    model_config = ConfigDict(extra="forbid")

    name: Any = Field(default=None, description="New product name")
    price: Any = Field(default=None, description="New price")
    min_order_qty: Any = Field(default=None, description="New minimum order text")
    image_path: str | None = Field(
        default=None, description="New image reference, or null to clear"
    )


class ProductResponse(BaseModel):
    """A product."""

    id: str = Field(..., description="Product identifier (prod_NNN)")
    name: str = Field(..., description="Product name")
    price: float = Field(..., description="Price")
    min_order_qty: str = Field(..., description="Minimum order text")
    image_path: str | None = Field(default=None, description="Image reference")
    created_at: datetime = Field(..., description="When the product was created")
    updated_at: datetime = Field(..., description="When the product was last updated")

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        """Convert Product entity to response schema."""
        return cls(
            id=product.id,
            name=product.name,
            price=float(product.price),
            min_order_qty=product.min_order_qty,
            image_path=product.image_path,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class ProductListResponse(BaseModel):
    """List of products, newest first."""

    items: list[ProductResponse] = Field(..., description="Products")
    total: int = Field(..., description="Number of products returned")


class ProductDeleteResponse(BaseModel):
    """Result of deleting a product."""

    id: str = Field(..., description="Deleted product id")
    deleted: bool = Field(default=True, description="Whether the row was removed")
    image_removed: bool = Field(
        default=False, description="Whether the attached image was removed"
    )


# ============================================================================
# Upload Schemas
# ============================================================================


class ImageUploadResponse(BaseModel):
    """Stored image reference, to be passed as image_path."""

    image_path: str = Field(..., description="Public reference of the stored image")
    original_name: str | None = Field(default=None, description="Uploaded file name")
    size: int = Field(..., description="Size in bytes")
    content_type: str = Field(..., description="Detected MIME type")


# ============================================================================
# Auth Schemas
# ============================================================================


class LoginRequest(BaseModel):
    """Admin login."""

    password: str = Field(..., description="Admin password")


class LoginResponse(BaseModel):
    """Issued admin session."""

    token: str = Field(..., description="Bearer token for admin requests")
    expires_at: datetime = Field(..., description="When the session expires")


class SessionResponse(BaseModel):
    """Session status."""

    authenticated: bool = Field(..., description="Whether the token is valid")
    expires_at: datetime | None = Field(default=None, description="Session expiry")
