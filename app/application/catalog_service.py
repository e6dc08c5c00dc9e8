"""Catalog application service.

The entry point for product mutations and reads. Validates caller input,
drives the product store and the image manager in the required order, and
refreshes the public listing cache after every successful change.
"""

from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.listing_cache import ListingCache
from app.catalog.identifiers import is_product_id
from app.catalog.repository import DEFAULT_TIMEOUT_SECONDS, ProductRepository
from app.catalog.validation import validate_product_input, validate_product_update
from app.domain.entities import Product
from app.domain.exceptions import DuplicateProductIdError, ProductNotFoundError
from app.images.manager import ImageManager

logger = structlog.get_logger()

CREATE_ATTEMPTS = 2


@dataclass
class DeleteResult:
    """Result of deleting a product.

    Attributes:
        product_id: Id of the removed product.
        image_removed: Whether an attached image was deleted from storage.
    """

    product_id: str
    image_removed: bool = False


class CatalogService:
    """Service for catalog operations.

    Example usage:
        async with db.session() as session:
            service = CatalogService(session, images, cache)
            product = await service.create_product(
                {"name": "Steel Rod", "price": 450.50, "min_order_qty": "10 units"}
            )
            await service.update_product(product.id, {"price": 500})
            await service.delete_product(product.id)
    """

    def __init__(
        self,
        session: AsyncSession,
        images: ImageManager,
        cache: ListingCache,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize service with database session.

        Args:
            session: Async SQLAlchemy session.
            images: Image lifecycle manager.
            cache: Public listing cache.
            timeout: Bound in seconds on each store operation.
        """
        self.session = session
        self.images = images
        self.cache = cache
        self.repository = ProductRepository(session, timeout=timeout)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_products(self) -> list[Product]:
        """Get the public listing, newest first (served from cache)."""
        return await self.cache.get_or_load(self.repository.get_all)

    async def get_product(self, product_id: str) -> Product:
        """Get a product by id.

        Raises:
            ProductNotFoundError: If the id is malformed or absent.
        """
        if not is_product_id(product_id):
            raise ProductNotFoundError(str(product_id))
        product = await self.repository.get_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def search_products(self, query: str) -> list[Product]:
        """Search product names, ignoring case."""
        return await self.repository.search(query)

    async def count_products(self) -> int:
        """Count stored products, bypassing the listing cache."""
        return await self.repository.count()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_product(self, data: dict[str, Any]) -> Product:
        """Validate and create a product.

        Any image must already be stored; its reference arrives as
        ``image_path``. A primary key collision from a concurrent create is
        retried once with a fresh id.

        Args:
            data: Raw fields (name, price, min_order_qty, image_path).

        Returns:
            The stored product.

        Raises:
            ValidationError: If a field breaks its rule.
            DuplicateProductIdError: If the retry collided too.
            InfrastructureError: If the store failed.
        """
        product_input = validate_product_input(data)

        for attempt in range(1, CREATE_ATTEMPTS + 1):
            try:
                product = await self.repository.create(product_input)
                break
            except DuplicateProductIdError as e:
                if attempt == CREATE_ATTEMPTS:
                    raise
                logger.warning(
                    "Retrying product create after id collision",
                    product_id=e.product_id,
                    attempt=attempt,
                )

        self.cache.invalidate()
        return product

    async def update_product(self, product_id: str, data: dict[str, Any]) -> Product:
        """Validate and apply a partial update.

        When the image reference changes, the previous managed image is
        removed after the row is written.

        Args:
            product_id: Product id.
            data: Supplied fields only; at least one is required.

        Returns:
            The stored product after the update.

        Raises:
            ValidationError: If empty or a supplied field breaks its rule.
            ProductNotFoundError: If the product does not exist.
        """
        changes = validate_product_update(data)
        existing = await self.get_product(product_id)

        updated = await self.repository.update(product_id, changes)
        if updated is None:
            raise ProductNotFoundError(product_id)

        if existing.image_path and existing.image_path != updated.image_path:
            await self.images.remove(existing.image_path)

        self.cache.invalidate()
        return updated

    async def delete_product(self, product_id: str) -> DeleteResult:
        """Delete a product and, best-effort, its image.

        Image removal failures are logged and never block the row delete;
        a failed row delete after the image is gone leaves the product
        pointing at a missing image.

        Raises:
            ProductNotFoundError: If the product does not exist.
            InfrastructureError: If the row could not be deleted.
        """
        product = await self.get_product(product_id)

        image_removed = False
        if product.image_path:
            image_removed = await self.images.remove(product.image_path)

        deleted = await self.repository.delete(product_id)
        if not deleted:
            raise ProductNotFoundError(product_id)

        self.cache.invalidate()
        logger.info(
            "Product removed from catalog",
            product_id=product_id,
            image_removed=image_removed,
        )
        return DeleteResult(product_id=product_id, image_removed=image_removed)
