"""Domain layer - Entities and exceptions.

This module exports the core catalog building blocks:

- **Entities**: Product and the inputs that create or change one
- **Exceptions**: The error taxonomy shared by every layer

Example usage:
    from app.domain import Product, ProductInput, ValidationError

    product_input = ProductInput(name="Steel Rod", price=Decimal("450.50"))
"""

# Entities
from app.domain.entities import UNSET, Product, ProductInput, ProductUpdate, to_price

# Exceptions
from app.domain.exceptions import (
    AuthenticationError,
    CatalogError,
    DatabaseUnavailableError,
    DuplicateProductIdError,
    ImageStorageError,
    ImageValidationError,
    InfrastructureError,
    InfrastructureTimeoutError,
    MalformedRecordError,
    NotFoundError,
    ProductNotFoundError,
    ValidationError,
)

__all__ = [
    # Entities
    "UNSET",
    "Product",
    "ProductInput",
    "ProductUpdate",
    "to_price",
    # Exceptions
    "CatalogError",
    "ValidationError",
    "ImageValidationError",
    "NotFoundError",
    "ProductNotFoundError",
    "DuplicateProductIdError",
    "InfrastructureError",
    "InfrastructureTimeoutError",
    "DatabaseUnavailableError",
    "ImageStorageError",
    "MalformedRecordError",
    "AuthenticationError",
]
