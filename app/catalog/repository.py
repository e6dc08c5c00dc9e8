"""Product repository for database operations.

The only component that reads or writes the ``products`` table. Each
operation runs in its own transaction, is bounded by a timeout, and maps
driver errors onto the catalog error taxonomy so callers can tell
"retry later" apart from "not found" and "bad input".
"""

import asyncio
from collections.abc import Awaitable, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

import structlog
from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.identifiers import ProductIdGenerator
from app.catalog.models import ProductRecord
from app.domain.entities import Product, ProductInput, ProductUpdate, to_price
from app.domain.exceptions import (
    DuplicateProductIdError,
    InfrastructureError,
    InfrastructureTimeoutError,
    ValidationError,
)

logger = structlog.get_logger()

T = TypeVar("T")

MAX_ID_LENGTH = 64
DEFAULT_TIMEOUT_SECONDS = 10.0
_TICK = timedelta(microseconds=1)


def _usable_id(product_id: Any) -> bool:
    """Cheap sanity check before touching the store."""
    return (
        isinstance(product_id, str)
        and 0 < len(product_id.strip()) <= MAX_ID_LENGTH
    )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ProductRepository:
    """Repository for Product database operations.

    Example usage:
        async with db.session() as session:
            repo = ProductRepository(session, timeout=5.0)
            product = await repo.create(
                ProductInput(name="Steel Rod", price=Decimal("450.50"), min_order_qty="10 units")
            )
            products = await repo.get_all()
    """

    def __init__(
        self,
        session: AsyncSession,
        id_generator: ProductIdGenerator | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
            id_generator: Source of new product ids.
            timeout: Bound in seconds on each store operation.
        """
        self.session = session
        self.timeout = timeout
        self.id_generator = id_generator or ProductIdGenerator(timeout=timeout)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_all(self) -> list[Product]:
        """Get every product, newest first.

        Returns:
            Products ordered by created_at descending; empty if none.
        """
        query = select(ProductRecord).order_by(*self._newest_first())
        records = await self._run("get_all", self._scalars(query))
        return [Product.from_record(r) for r in records]

    async def get_by_id(self, product_id: str) -> Product | None:
        """Get product by ID.

        Args:
            product_id: Product ID.

        Returns:
            Product if found, None otherwise (including nonsensical ids).
        """
        if not _usable_id(product_id):
            return None
        record = await self._run("get_by_id", self._load(product_id))
        return Product.from_record(record) if record is not None else None

    async def search(self, query: str) -> list[Product]:
        """Find products whose name contains the query, ignoring case.

        Args:
            query: Substring to look for.

        Returns:
            Matching products, newest first; empty for a blank query.
        """
        if not isinstance(query, str) or not query.strip():
            return []
        pattern = f"%{_escape_like(query.strip())}%"
        statement = (
            select(ProductRecord)
            .where(ProductRecord.name.ilike(pattern, escape="\\"))
            .order_by(*self._newest_first())
        )
        records = await self._run("search", self._scalars(statement))
        return [Product.from_record(r) for r in records]

    async def count(self) -> int:
        """Count stored products."""
        result = await self._run(
            "count", self.session.execute(select(func.count(ProductRecord.id)))
        )
        return int(result.scalar_one())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, data: ProductInput) -> Product:
        """Insert a new product under a freshly generated id.

        Args:
            data: Product fields.

        Returns:
            The product as stored, read back after the insert.

        Raises:
            ValidationError: If name or price is missing, or price breaks the
                store's range constraint.
            DuplicateProductIdError: If the generated id is already taken.
        """
        if not data.name or not data.name.strip():
            raise ValidationError("name", "Product name is required")
        if data.price is None:
            raise ValidationError("price", "Price is required")
        try:
            price = to_price(data.price)
        except ValueError:
            raise ValidationError("price", "Price must be a valid number") from None

        product_id = await self.id_generator.next_id(self.session)
        now = datetime.now(timezone.utc)
        values = {
            "id": product_id,
            "name": data.name.strip(),
            "price": price,
            "min_order_qty": (data.min_order_qty or "").strip(),
            "image_path": data.image_path or None,
            "created_at": now,
            "updated_at": now,
        }

        # Core insert so a taken id always surfaces as an IntegrityError.
        async def _insert() -> ProductRecord | None:
            await self.session.execute(insert(ProductRecord).values(**values))
            await self.session.commit()
            return await self._load(product_id)

        stored = await self._run("create", _insert(), product_id=product_id)
        if stored is None:
            raise InfrastructureError(
                f"Product {product_id} was created but could not be retrieved"
            )

        logger.info("Product created", product_id=product_id)
        return Product.from_record(stored)

    async def update(self, product_id: str, changes: ProductUpdate) -> Product | None:
        """Apply a partial update.

        Fields that are unset, or equal to the stored value, are left alone.
        When nothing changes the stored row is returned untouched.

        Args:
            product_id: Product ID.
            changes: Fields to change.

        Returns:
            The product as stored after the update, or None if not found.
        """
        if not _usable_id(product_id):
            return None

        record = await self._run("update", self._load(product_id))
        if record is None:
            return None

        current = Product.from_record(record)
        values = self._normalize(changes.changes())
        diff = {
            field: value
            for field, value in values.items()
            if getattr(current, field) != value
        }
        if not diff:
            return current

        for field, value in diff.items():
            setattr(record, field, value)
        record.updated_at = max(datetime.now(timezone.utc), current.updated_at + _TICK)

        async def _write() -> ProductRecord | None:
            await self.session.commit()
            self.session.expunge(record)
            return await self._load(product_id)

        stored = await self._run("update", _write(), product_id=product_id)
        if stored is None:
            return None

        logger.info(
            "Product updated",
            product_id=product_id,
            fields=sorted(diff),
        )
        return Product.from_record(stored)

    async def delete(self, product_id: str) -> bool:
        """Delete a product.

        Args:
            product_id: Product ID.

        Returns:
            True if a row was removed, False if it did not exist.
        """
        if not _usable_id(product_id):
            return False

        async def _delete() -> int:
            result = await self.session.execute(
                delete(ProductRecord).where(ProductRecord.id == product_id)
            )
            await self.session.commit()
            return result.rowcount or 0

        removed = await self._run("delete", _delete(), product_id=product_id)
        if removed:
            logger.info("Product deleted", product_id=product_id)
        return removed > 0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _newest_first() -> tuple[Any, ...]:
        return (
            ProductRecord.created_at.desc(),
            func.length(ProductRecord.id).desc(),
            ProductRecord.id.desc(),
        )

    @staticmethod
    def _normalize(values: dict[str, Any]) -> dict[str, Any]:
        """Bring supplied update values into stored form."""
        normalized: dict[str, Any] = {}
        for field, value in values.items():
            if field in ("name", "min_order_qty") and isinstance(value, str):
                value = value.strip()
            elif field == "price":
                try:
                    value = to_price(value)
                except ValueError:
                    raise ValidationError("price", "Price must be a valid number") from None
            elif field == "image_path":
                value = value or None
            normalized[field] = value
        return normalized

    async def _load(self, product_id: str) -> ProductRecord | None:
        result = await self.session.execute(
            select(ProductRecord)
            .where(ProductRecord.id == product_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _scalars(self, statement: Any) -> Sequence[ProductRecord]:
        result = await self.session.execute(statement)
        return result.scalars().all()

    async def _run(self, operation: str, awaitable: Awaitable[T], **context: Any) -> T:
        """Await a store call with a time bound and typed errors.

        Raises:
            InfrastructureTimeoutError: If the bound expires.
            DuplicateProductIdError: On primary key collision.
            ValidationError: On check constraint violation.
            InfrastructureError: On any other driver failure.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except TimeoutError:
            await self._safe_rollback()
            logger.error(
                "Product store operation timed out",
                operation=operation,
                timeout=self.timeout,
                **context,
            )
            raise InfrastructureTimeoutError(operation, self.timeout) from None
        except IntegrityError as e:
            await self._safe_rollback()
            message = str(e.orig).lower()
            if "check" in message:
                raise ValidationError(
                    "price", "Price must be between 0 and 1000000"
                ) from e
            if "unique" in message or "duplicate" in message or "primary" in message:
                product_id = context.get("product_id", "")
                logger.warning(
                    "Product id collision",
                    operation=operation,
                    product_id=product_id,
                )
                raise DuplicateProductIdError(product_id) from e
            raise ValidationError(None, "A required field is missing") from e
        except (SQLAlchemyError, OSError) as e:
            await self._safe_rollback()
            logger.exception(
                "Product store operation failed",
                operation=operation,
                error=str(e),
                **context,
            )
            raise InfrastructureError(f"Product store '{operation}' failed") from e

    async def _safe_rollback(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError as e:
            logger.warning("Rollback failed", error=str(e))

