"""SQLAlchemy models for the product catalog.

Defines the ``products`` table. Price bounds are enforced by a check
constraint so the store rejects bad values even when a caller skips
validation.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.database import Base

MAX_PRICE = Decimal("1000000")


class ProductRecord(Base):
    """Stored product row.

    Attributes:
        id: Sequential identifier (``prod_NNN``).
        name: Product name.
        price: Price with two decimal places.
        min_order_qty: Free-form minimum order text.
        image_path: Image URL or storage path, nullable.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2, asdecimal=True), nullable=False)
    min_order_qty: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    image_path: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint(
            f"price >= 0 AND price <= {MAX_PRICE}",
            name="ck_products_price_range",
        ),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<ProductRecord(id={self.id}, name={self.name[:30]})>"


# Newest-first listing
Index("ix_products_created_at", ProductRecord.created_at.desc())
