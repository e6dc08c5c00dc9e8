"""Field rules for product input.

These checks belong to the service boundary and are independent of storage;
the store keeps its own check constraint on price as a backstop.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from app.catalog.models import MAX_PRICE
from app.domain.entities import PRICE_QUANTUM, ProductInput, ProductUpdate, parse_amount
from app.domain.exceptions import ValidationError

MAX_NAME_LENGTH = 100
MAX_MIN_ORDER_QTY_LENGTH = 100
MAX_IMAGE_PATH_LENGTH = 1000
MIN_PRICE = Decimal("0")


def validate_name(name: Any) -> str:
    """Validate a product name.

    Returns:
        The trimmed name.

    Raises:
        ValidationError: If empty, not a string, or too long.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name", "Product name is required")
    name = name.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            "name", f"Product name must be at most {MAX_NAME_LENGTH} characters"
        )
    return name


def validate_price(price: Any) -> Decimal:
    """Validate a product price.

    Numeric strings are accepted; booleans and non-finite values are not.
    The range is checked on the value as sent; only an accepted price is
    rounded half up to cents.

    Returns:
        The price as a two-place Decimal.

    Raises:
        ValidationError: If not a number or out of range.
    """
    if price is None:
        raise ValidationError("price", "Price is required")
    try:
        amount = parse_amount(price)
    except ValueError:
        raise ValidationError("price", "Price must be a valid number") from None
    if amount < MIN_PRICE:
        raise ValidationError("price", f"Price must be at least {MIN_PRICE}")
    if amount > MAX_PRICE:
        raise ValidationError("price", f"Price cannot exceed {MAX_PRICE}")
    return amount.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def validate_min_order_qty(qty: Any) -> str:
    """Validate the minimum order text.

    Returns:
        The trimmed value.
    """
    if isinstance(qty, int) and not isinstance(qty, bool):
        qty = str(qty)
    if not isinstance(qty, str) or not qty.strip():
        raise ValidationError("min_order_qty", "Minimum order quantity is required")
    qty = qty.strip()
    if len(qty) > MAX_MIN_ORDER_QTY_LENGTH:
        raise ValidationError(
            "min_order_qty",
            f"Minimum order quantity must be at most {MAX_MIN_ORDER_QTY_LENGTH} characters",
        )
    return qty


def validate_image_path(image_path: Any) -> str | None:
    """Validate an image reference.

    Accepts None (no image), an absolute http(s) URL, or a ``/``-rooted path.
    """
    if image_path is None:
        return None
    if not isinstance(image_path, str):
        raise ValidationError("image_path", "Image path must be a string")
    image_path = image_path.strip()
    if not image_path:
        return None
    if len(image_path) > MAX_IMAGE_PATH_LENGTH:
        raise ValidationError(
            "image_path",
            f"Image path must be at most {MAX_IMAGE_PATH_LENGTH} characters",
        )
    if not image_path.startswith(("http://", "https://", "/")):
        raise ValidationError(
            "image_path", "Image path must be an absolute URL or a /-rooted path"
        )
    return image_path


def validate_product_input(data: dict[str, Any]) -> ProductInput:
    """Validate a complete create payload.

    Args:
        data: Raw field values.

    Returns:
        Normalized ProductInput.
    """
    return ProductInput(
        name=validate_name(data.get("name")),
        price=validate_price(data.get("price")),
        min_order_qty=validate_min_order_qty(data.get("min_order_qty")),
        image_path=validate_image_path(data.get("image_path")),
    )


_FIELD_VALIDATORS = {
    "name": validate_name,
    "price": validate_price,
    "min_order_qty": validate_min_order_qty,
    "image_path": validate_image_path,
}


def validate_product_update(data: dict[str, Any]) -> ProductUpdate:
    """Validate a partial update payload.

    Only supplied keys are checked; at least one known field is required.

    Args:
        data: Raw field values keyed by field name.

    Returns:
        Normalized ProductUpdate.

    Raises:
        ValidationError: If empty, unknown fields are present, or a field fails.
    """
    unknown = sorted(set(data) - set(_FIELD_VALIDATORS))
    if unknown:
        raise ValidationError(None, f"Unknown fields: {', '.join(unknown)}")
    if not data:
        raise ValidationError(None, "At least one field must be provided for update")

    return ProductUpdate(
        **{field: _FIELD_VALIDATORS[field](value) for field, value in data.items()}
    )
