"""Tests for product field rules."""

from decimal import Decimal

import pytest

from app.catalog.validation import (
    validate_image_path,
    validate_min_order_qty,
    validate_name,
    validate_price,
    validate_product_input,
    validate_product_update,
)
from app.domain.exceptions import ValidationError


class TestValidateName:
    """Tests for name validation."""

    def test_trims_name(self) -> None:
        """Surrounding whitespace is removed."""
        assert validate_name("  Steel Rod  ") == "Steel Rod"

    @pytest.mark.parametrize("name", [None, "", "   ", 42])
    def test_rejects_missing_name(self, name: object) -> None:
        """Name is required."""
        with pytest.raises(ValidationError) as exc_info:
            validate_name(name)
        assert exc_info.value.field == "name"
        assert exc_info.value.reason == "Product name is required"

    def test_rejects_long_name(self) -> None:
        """Names are limited to 100 characters."""
        assert validate_name("x" * 100) == "x" * 100
        with pytest.raises(ValidationError):
            validate_name("x" * 101)


class TestValidatePrice:
    """Tests for price validation."""

    def test_accepts_bounds(self) -> None:
        """Zero and one million are both valid."""
        assert validate_price(0) == Decimal("0.00")
        assert validate_price(1000000) == Decimal("1000000.00")

    def test_rejects_above_maximum(self) -> None:
        """Prices above one million are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_price(1000001)
        assert exc_info.value.field == "price"
        assert exc_info.value.reason == "Price cannot exceed 1000000"

    def test_rejects_negative(self) -> None:
        """Negative prices are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_price(-1)
        assert exc_info.value.reason == "Price must be at least 0"

    def test_requires_price(self) -> None:
        """A missing price is reported as such."""
        with pytest.raises(ValidationError) as exc_info:
            validate_price(None)
        assert exc_info.value.reason == "Price is required"

    @pytest.mark.parametrize("price", ["abc", True, "nan", [1]])
    def test_rejects_non_numbers(self, price: object) -> None:
        """Non-numeric values are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_price(price)
        assert exc_info.value.reason == "Price must be a valid number"

    def test_accepts_numeric_string(self) -> None:
        """Numeric strings are converted."""
        assert validate_price("450.50") == Decimal("450.50")

    @pytest.mark.parametrize("price", [1000000.001, "1000000.004", Decimal("1000000.0001")])
    def test_range_checked_before_rounding_above(self, price: object) -> None:
        """Values just over the maximum are not rounded back into range."""
        with pytest.raises(ValidationError) as exc_info:
            validate_price(price)
        assert exc_info.value.reason == "Price cannot exceed 1000000"

    @pytest.mark.parametrize("price", [-0.004, "-0.001", "-0.00001"])
    def test_range_checked_before_rounding_below(self, price: object) -> None:
        """Tiny negative values are not rounded up to zero."""
        with pytest.raises(ValidationError) as exc_info:
            validate_price(price)
        assert exc_info.value.reason == "Price must be at least 0"

    def test_accepted_price_rounds_half_up(self) -> None:
        """In-range prices with extra places are rounded to cents."""
        assert validate_price(450.555) == Decimal("450.56")
        assert validate_price("999999.999") == Decimal("1000000.00")


class TestValidateMinOrderQty:
    """Tests for minimum order validation."""

    def test_free_text(self) -> None:
        """Free text is kept, trimmed."""
        assert validate_min_order_qty(" 1 dozen ") == "1 dozen"

    def test_integer_becomes_text(self) -> None:
        """Integers are converted to text."""
        assert validate_min_order_qty(10) == "10"

    @pytest.mark.parametrize("qty", [None, "", "  "])
    def test_required(self, qty: object) -> None:
        """Minimum order is required."""
        with pytest.raises(ValidationError) as exc_info:
            validate_min_order_qty(qty)
        assert exc_info.value.field == "min_order_qty"


class TestValidateImagePath:
    """Tests for image reference validation."""

    @pytest.mark.parametrize("path", [None, "", "  "])
    def test_empty_means_no_image(self, path: object) -> None:
        """Empty references mean no image."""
        assert validate_image_path(path) is None

    @pytest.mark.parametrize(
        "path",
        ["/media/products/a.png", "https://cdn.example.com/a.png", "http://x/a.jpg"],
    )
    def test_accepts_rooted_paths_and_urls(self, path: str) -> None:
        """Rooted paths and http(s) URLs are accepted."""
        assert validate_image_path(path) == path

    def test_rejects_relative_and_other_schemes(self) -> None:
        """Relative paths and other schemes are rejected."""
        for path in ("media/a.png", "ftp://host/a.png", "javascript:alert(1)"):
            with pytest.raises(ValidationError):
                validate_image_path(path)


class TestValidatePayloads:
    """Tests for whole-payload validation."""

    def test_create_payload(self) -> None:
        """A complete payload becomes a ProductInput."""
        product_input = validate_product_input(
            {"name": "Steel Rod", "price": 450.50, "min_order_qty": "10 units"}
        )
        assert product_input.name == "Steel Rod"
        assert product_input.price == Decimal("450.50")
        assert product_input.image_path is None

    def test_update_requires_a_field(self) -> None:
        """Empty updates are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_product_update({})
        assert exc_info.value.field is None

    def test_update_rejects_unknown_fields(self) -> None:
        """Fields outside the product are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_product_update({"price": 5, "id": "prod_999"})
        assert exc_info.value.reason == "Unknown fields: id"

    def test_update_checks_only_supplied_fields(self) -> None:
        """Only supplied fields are validated and reported."""
        update = validate_product_update({"price": 500})
        assert update.changes() == {"price": Decimal("500.00")}

    def test_update_can_clear_image(self) -> None:
        """An explicit null clears the image."""
        update = validate_product_update({"image_path": None})
        assert update.changes() == {"image_path": None}
