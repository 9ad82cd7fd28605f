"""Unit tests for DefaultProductService."""

from decimal import Decimal

import pytest

from storefront.domain import errors

# pylint: disable=magic-value-comparison


@pytest.fixture
def widget(products):
    """A product with ten units in stock."""
    return products.create("Widget", "A widget", "9.99", 10)


def test_create(products, widget, recorder):
    """Products are stored with their price as Decimal."""
    stored = products.get(widget.aggregate_id)
    assert stored.price == Decimal("9.99")
    assert stored.stock == 10
    assert products.get_by_name("Widget").aggregate_id == widget.aggregate_id
    assert recorder.names == ["product.created"]


def test_duplicate_name_is_rejected(products, widget):
    """Names are unique."""
    with pytest.raises(errors.ProductNameTakenError):
        products.create("Widget", "", "1.00", 1)


def test_update_is_partial(products, widget, recorder):
    """Omitted fields keep their value."""
    products.update(widget.aggregate_id, price="12.50")
    stored = products.get(widget.aggregate_id)
    assert (stored.name, stored.description, stored.price) == (
        "Widget",
        "A widget",
        Decimal("12.50"),
    )
    assert recorder.names[-1] == "product.updated"


def test_update_description_can_be_cleared(products, widget):
    """description=None clears it."""
    products.update(widget.aggregate_id, description=None)
    assert products.get(widget.aggregate_id).description == ""


def test_rename_to_taken_name_is_rejected(products, widget):
    """Renaming onto another product's name conflicts; keeping one's own is fine."""
    other = products.create("Gadget", "", "1.00", 1)
    with pytest.raises(errors.ProductNameTakenError):
        products.update(other.aggregate_id, name="Widget")
    products.update(widget.aggregate_id, name="Widget", price="1.00")
    assert products.get(other.aggregate_id).name == "Gadget"


def test_update_stock(products, widget, recorder):
    """Stock moves by the signed delta."""
    assert products.update_stock(widget.aggregate_id, 5).stock == 15
    assert products.update_stock(widget.aggregate_id, -15).stock == 0
    assert products.get(widget.aggregate_id).stock == 0
    assert recorder.names[-2:] == ["product.stock_updated", "product.stock_updated"]
    assert recorder.events[-1].payload["change"] == -15


def test_stock_cannot_go_negative(products, widget, recorder):
    """Over-reservation fails and leaves the stock untouched."""
    with pytest.raises(errors.InsufficientStockError):
        products.reserve_stock(widget.aggregate_id, 11)
    with pytest.raises(errors.InsufficientStockError):
        products.update_stock(widget.aggregate_id, -11)
    assert products.get(widget.aggregate_id).stock == 10
    assert recorder.names == ["product.created"]


def test_reserve_stock(products, widget):
    """Reservations take units out of stock."""
    products.reserve_stock(widget.aggregate_id, 4)
    products.reserve_stock(widget.aggregate_id, 6)
    assert products.get(widget.aggregate_id).stock == 0


@pytest.mark.parametrize("quantity", [0, -1])
def test_reserve_requires_positive_quantity(products, widget, quantity):
    """Reserving nothing is a validation error."""
    with pytest.raises(errors.ValidationError):
        products.reserve_stock(widget.aggregate_id, quantity)


def test_delete(products, widget, recorder):
    """A deleted product is gone and its name is free again."""
    products.delete(widget.aggregate_id)
    assert products.get(widget.aggregate_id) is None
    assert products.get_by_name("Widget") is None
    assert recorder.names[-1] == "product.deleted"
    with pytest.raises(errors.ProductNotFoundError):
        products.update_stock(widget.aggregate_id, 1)


def test_list(products, widget):
    """Listing counts live products only."""
    gadget = products.create("Gadget", "", "1.00", 1)
    assert products.list()[1] == 2
    products.delete(gadget.aggregate_id)
    page, total = products.list()
    assert total == 1
    assert [p.aggregate_id for p in page] == [widget.aggregate_id]
