"""Product catalog store.

Provides the product table, id generation, field rules and the repository
that persists and queries products.
"""

from app.catalog.identifiers import ProductIdGenerator, format_product_id, is_product_id
from app.catalog.models import ProductRecord
from app.catalog.repository import ProductRepository
from app.catalog.validation import validate_product_input, validate_product_update

__all__ = [
    # Models
    "ProductRecord",
    # Identifiers
    "ProductIdGenerator",
    "format_product_id",
    "is_product_id",
    # Validation
    "validate_product_input",
    "validate_product_update",
    # Repository
    "ProductRepository",
]
