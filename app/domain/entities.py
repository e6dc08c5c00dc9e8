"""Domain entities for the product catalog.

``Product`` is the only persistent entity. ``Product.from_record`` is the
single place where a stored row becomes a typed product; every read path goes
through it so that malformed rows fail loudly instead of leaking untyped
values to callers.
"""

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Self

from app.domain.exceptions import MalformedRecordError

PRICE_QUANTUM = Decimal("0.01")


class _Unset:
    """Marker for partial-update fields the caller did not supply."""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def parse_amount(value: Any) -> Decimal:
    """Parse a numeric value exactly as given, without rounding.

    Floats go through their shortest repr, so 0.1 parses as Decimal("0.1").

    Args:
        value: int, float, Decimal or numeric string.

    Raises:
        ValueError: If value is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError("Boolean is not a price")
    try:
        amount = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Not a number: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return amount


def to_price(value: Any) -> Decimal:
    """Convert a numeric value to a two-place Decimal, rounding half up.

    Args:
        value: int, float, Decimal or numeric string.

    Returns:
        Quantized Decimal.

    Raises:
        ValueError: If value is not a finite number.
    """
    return parse_amount(value).quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def to_utc(value: Any) -> datetime:
    """Coerce a stored timestamp to an aware UTC datetime.

    SQLite hands back naive datetimes (or ISO strings for legacy rows);
    both are taken to be UTC.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        raise ValueError(f"Not a timestamp: {value!r}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Product:
    """A catalog product.

    Attributes:
        id: Identifier in the form ``prod_NNN``; immutable.
        name: Display name.
        price: Non-negative amount, at most 1,000,000.
        min_order_qty: Free-form minimum order text (e.g. "1 dozen").
        image_path: Image reference, or None for the placeholder.
        created_at: Insert time (UTC).
        updated_at: Last modification time (UTC).
    """

    id: str
    name: str
    price: Decimal
    min_order_qty: str
    image_path: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: Any) -> Self:
        """Build a Product from a stored row.

        Args:
            record: ORM instance or row mapping with product columns.

        Returns:
            Typed Product.

        Raises:
            MalformedRecordError: If any column cannot be coerced.
        """
        get = record.get if isinstance(record, dict) else lambda k: getattr(record, k, None)
        product_id = get("id")

        try:
            if not isinstance(product_id, str) or not product_id:
                raise ValueError("missing id")

            name = get("name")
            if name is None:
                raise ValueError("missing name")

            min_order_qty = get("min_order_qty")
            if min_order_qty is None:
                raise ValueError("missing min_order_qty")

            image_path = get("image_path")
            image_path = str(image_path) if image_path else None

            created_at = to_utc(get("created_at"))
            updated_raw = get("updated_at")
            updated_at = to_utc(updated_raw) if updated_raw is not None else created_at

            return cls(
                id=product_id,
                name=str(name),
                price=to_price(get("price")),
                min_order_qty=str(min_order_qty),
                image_path=image_path,
                created_at=created_at,
                updated_at=updated_at,
            )
        except ValueError as e:
            raise MalformedRecordError(
                product_id if isinstance(product_id, str) else None, str(e)
            ) from e

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "price": float(self.price),
            "min_order_qty": self.min_order_qty,
            "image_path": self.image_path,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class ProductInput:
    """Fields supplied when creating a product."""

    name: str
    price: Decimal
    min_order_qty: str = ""
    image_path: str | None = None


@dataclass(frozen=True)
class ProductUpdate:
    """Partial update: only fields that are not ``UNSET`` change.

    ``image_path=None`` is a supplied value (clear the image), unlike
    ``UNSET`` which leaves the stored value alone.
    """

    name: Any = UNSET
    price: Any = UNSET
    min_order_qty: Any = UNSET
    image_path: Any = UNSET

    def changes(self) -> dict[str, Any]:
        """Get the supplied fields.

        Returns:
            Mapping of field name to new value.
        """
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    @property
    def is_empty(self) -> bool:
        return not self.changes()
