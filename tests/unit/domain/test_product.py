"""Unit tests for the Product aggregate."""

from decimal import Decimal

import pytest

from storefront.domain import errors, events
from storefront.domain.aggregates import Product
from storefront.domain.unset import UNSET

# pylint: disable=magic-value-comparison


def make_product(**overrides) -> Product:
    """Create a product with sensible defaults and drain its creation event."""
    params = {
        "name": "Widget",
        "description": "A widget",
        "price": "9.99",
        "stock": 10,
    } | overrides
    product = Product.create("p-1", **params)
    product.drain_events()
    return product


class TestCreate:
    """Tests for Product.create."""

    @staticmethod
    def test_normalises_price_to_decimal():
        """Float prices go through their repr, not their binary expansion."""
        product = make_product(price=9.99)
        assert product.price == Decimal("9.99")

    @staticmethod
    @pytest.mark.parametrize(
        ("price", "expected"),
        [("5", "5.00"), ("29.970", "29.97"), (Decimal("0.1"), "0.10")],
    )
    def test_prices_are_kept_to_the_cent(price, expected):
        """Whole-cent amounts are accepted and carry two decimal places."""
        assert str(make_product(price=price).price) == expected

    @staticmethod
    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"name": ""}, "name"),
            ({"price": 0}, "price"),
            ({"price": "-1"}, "price"),
            ({"price": "abc"}, "price"),
            ({"price": True}, "price"),
            ({"price": "NaN"}, "price"),
            ({"price": "0.001"}, "price"),
            ({"price": "9.999"}, "price"),
            ({"stock": -1}, "stock"),
            ({"stock": 1.5}, "stock"),
        ],
    )
    def test_rejects_invalid_attributes(overrides, field):
        """Invalid attributes raise ValidationError naming the field."""
        with pytest.raises(errors.ValidationError) as exc:
            make_product(**overrides)
        assert exc.value.field == field

    @staticmethod
    def test_records_created_event_with_string_price():
        """The payload carries the price as a string."""
        product = Product.create("p-1", name="Widget", price="5", stock=0)
        (event,) = product.drain_events()
        assert isinstance(event, events.ProductCreated)
        assert event.payload()["price"] == "5.00"


class TestUpdate:
    """Tests for partial updates."""

    @staticmethod
    def test_unset_fields_keep_their_values():
        """Only the fields passed are changed."""
        product = make_product()
        product.update(price="12.50")
        assert product.price == Decimal("12.50")
        assert product.name == "Widget"
        assert product.description == "A widget"

    @staticmethod
    def test_description_can_be_cleared():
        """Passing None clears the description to an empty string."""
        product = make_product()
        product.update(description=None)
        assert product.description == ""

    @staticmethod
    @pytest.mark.parametrize("field", ["name", "price"])
    def test_name_and_price_cannot_be_cleared(field):
        """Passing None for name or price is rejected."""
        product = make_product()
        with pytest.raises(errors.ValidationError, match="cannot be cleared"):
            product.update(**{field: None})
        assert not product.pending_events

    @staticmethod
    def test_records_updated_event():
        """update() records product.updated with the full new state."""
        product = make_product()
        product.update(name="Gadget", description=UNSET)
        (event,) = product.drain_events()
        assert event.payload() == {
            "product_id": "p-1",
            "name": "Gadget",
            "description": "A widget",
            "price": "9.99",
        }


class TestStock:
    """Tests for adjust_stock and reserve_stock."""

    @staticmethod
    def test_adjust_stock_applies_signed_delta():
        """Positive and negative deltas are both applied."""
        product = make_product(stock=5)
        product.adjust_stock(3)
        product.adjust_stock(-8)
        assert product.stock == 0
        changes = [e.change for e in product.drain_events()]
        assert changes == [3, -8]

    @staticmethod
    def test_adjust_stock_below_zero_raises_and_keeps_stock():
        """Driving stock negative fails without touching the aggregate."""
        product = make_product(stock=2)
        with pytest.raises(errors.InsufficientStockError) as exc:
            product.adjust_stock(-3)
        assert exc.value.available == 2
        assert exc.value.delta == -3
        assert product.stock == 2
        assert not product.pending_events

    @staticmethod
    @pytest.mark.parametrize("quantity", [0, -1])
    def test_reserve_requires_positive_quantity(quantity):
        """Reserving zero or fewer units is a validation error."""
        product = make_product()
        with pytest.raises(errors.ValidationError):
            product.reserve_stock(quantity)

    @staticmethod
    def test_reserve_takes_units_out_of_stock():
        """reserve_stock(n) is adjust_stock(-n)."""
        product = make_product(stock=4)
        product.reserve_stock(4)
        assert product.stock == 0
        (event,) = product.drain_events()
        assert (event.old_stock, event.new_stock, event.change) == (4, 0, -4)


def test_snapshot_roundtrip():
    """Snapshots store the price as a string and restore it exactly."""
    product = make_product(price="19.90")
    snapshot = product.to_snapshot()
    assert snapshot["price"] == "19.90"
    assert Product.from_snapshot(snapshot).price == Decimal("19.90")
