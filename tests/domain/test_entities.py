"""Tests for domain entities."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.domain import UNSET, Product, ProductUpdate, to_price
from app.domain.entities import to_utc
from app.domain.exceptions import MalformedRecordError


# ============================================================================
# Test Fixtures
# ============================================================================


def make_record(**overrides: object) -> dict:
    """Create a stored-row mapping."""
    record = {
        "id": "prod_001",
        "name": "Steel Rod",
        "price": 450.5,
        "min_order_qty": "10 units",
        "image_path": None,
        "created_at": datetime(2024, 5, 1, 12, 0, 0),
        "updated_at": datetime(2024, 5, 1, 12, 0, 0),
    }
    record.update(overrides)
    return record


# ============================================================================
# Price Conversion Tests
# ============================================================================


class TestToPrice:
    """Tests for price conversion."""

    def test_quantizes_to_two_places(self) -> None:
        """Floats become two-place decimals."""
        assert to_price(450.5) == Decimal("450.50")
        assert str(to_price(450.5)) == "450.50"

    def test_rounds_half_up(self) -> None:
        """Half cents round away from zero."""
        assert to_price("0.005") == Decimal("0.01")
        assert to_price("2.675") == Decimal("2.68")

    def test_accepts_numeric_strings(self) -> None:
        """Numeric strings are accepted."""
        assert to_price(" 12 ") == Decimal("12.00")

    @pytest.mark.parametrize("value", [True, "abc", "nan", "inf", None])
    def test_rejects_non_numbers(self, value: object) -> None:
        """Booleans, text and non-finite values are not prices."""
        with pytest.raises(ValueError):
            to_price(value)


class TestToUtc:
    """Tests for timestamp coercion."""

    def test_naive_datetime_is_utc(self) -> None:
        """Naive values are taken to be UTC."""
        value = to_utc(datetime(2024, 1, 1, 8, 30))
        assert value.tzinfo == timezone.utc
        assert value.hour == 8

    def test_parses_iso_string(self) -> None:
        """ISO strings, including the Z suffix, are parsed."""
        value = to_utc("2024-01-01T08:30:00Z")
        assert value == datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc)

    def test_rejects_other_types(self) -> None:
        """Non-timestamps raise ValueError."""
        with pytest.raises(ValueError):
            to_utc(12345)


# ============================================================================
# Product Tests
# ============================================================================


class TestProduct:
    """Tests for Product entity."""

    def test_from_record_coerces_columns(self) -> None:
        """Row values become typed fields."""
        product = Product.from_record(make_record())

        assert product.id == "prod_001"
        assert product.price == Decimal("450.50")
        assert product.created_at.tzinfo == timezone.utc
        assert product.image_path is None

    def test_from_record_accepts_attribute_objects(self) -> None:
        """ORM-like objects are read by attribute."""

        class Row:
            pass

        row = Row()
        for key, value in make_record(image_path="/media/products/a.png").items():
            setattr(row, key, value)

        product = Product.from_record(row)
        assert product.image_path == "/media/products/a.png"

    def test_missing_updated_at_falls_back_to_created_at(self) -> None:
        """A row without updated_at reports created_at."""
        product = Product.from_record(make_record(updated_at=None))
        assert product.updated_at == product.created_at

    def test_empty_image_path_is_none(self) -> None:
        """Empty image references mean no image."""
        product = Product.from_record(make_record(image_path=""))
        assert product.image_path is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"id": None},
            {"name": None},
            {"price": "not-a-number"},
            {"min_order_qty": None},
            {"created_at": "yesterday"},
        ],
    )
    def test_malformed_record_raises(self, overrides: dict) -> None:
        """Rows that cannot be coerced fail loudly."""
        with pytest.raises(MalformedRecordError):
            Product.from_record(make_record(**overrides))

    def test_to_dict(self) -> None:
        """Dictionary form is JSON friendly."""
        data = Product.from_record(make_record()).to_dict()

        assert data["price"] == 450.5
        assert data["created_at"] == "2024-05-01T12:00:00+00:00"
        assert data["min_order_qty"] == "10 units"


# ============================================================================
# Partial Update Tests
# ============================================================================


class TestProductUpdate:
    """Tests for partial updates."""

    def test_unset_is_falsy_singleton(self) -> None:
        """UNSET is a single falsy marker."""
        assert not UNSET
        assert repr(UNSET) == "UNSET"

    def test_changes_only_supplied_fields(self) -> None:
        """Unsupplied fields are not reported."""
        update = ProductUpdate(price=Decimal("500.00"))
        assert update.changes() == {"price": Decimal("500.00")}
        assert not update.is_empty

    def test_none_is_a_supplied_value(self) -> None:
        """Clearing the image is a change."""
        update = ProductUpdate(image_path=None)
        assert update.changes() == {"image_path": None}

    def test_empty_update(self) -> None:
        """No supplied fields means empty."""
        assert ProductUpdate().is_empty
