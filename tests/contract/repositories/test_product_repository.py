"""Contract tests for ProductRepository implementations."""

import concurrent.futures as cf
from decimal import Decimal

import pytest

from storefront.domain import errors
from storefront.domain.aggregates import Product

# pylint: disable=magic-value-comparison


def make_product(n: int = 1, stock: int = 10, name: str | None = None) -> Product:
    """A new product with its creation event drained."""
    product = Product.create(
        f"p-{n:03d}", name=name or f"Product {n}", price="4.20", stock=stock
    )
    product.drain_events()
    return product


def test_add_and_get(backend):
    """Prices come back as two-place Decimals."""
    backend.products.add(make_product())
    stored = backend.products.get_by_id("p-001")
    assert stored.price == Decimal("4.20")
    assert stored.stock == 10
    assert backend.products.get_by_name("Product 1").aggregate_id == "p-001"
    assert backend.products.get_by_id("nope") is None


@pytest.mark.parametrize("price", ["0.01", "9.99", "1000", "12345.6"])
def test_price_reads_back_exactly(backend, price):
    """Whatever the store, a product reloads with the price it was created with."""
    product = Product.create("p-001", name="Bolt", price=price, stock=1)
    product.drain_events()
    backend.products.add(product)

    stored = backend.products.get_by_id("p-001")

    assert stored.price == product.price
    assert str(stored.price) == str(product.price)
    assert stored.to_snapshot()["price"] == product.to_snapshot()["price"]


def test_update_does_not_touch_stock(backend):
    """Stock only changes through update_stock."""
    product = make_product()
    backend.products.add(product)
    backend.products.update_stock(product.aggregate_id, -4)
    product.update(name="Renamed", price="5.00")
    backend.products.update(product)
    stored = backend.products.get_by_id(product.aggregate_id)
    assert (stored.name, stored.price, stored.stock) == ("Renamed", Decimal("5.00"), 6)


def test_update_stock_returns_new_level(backend):
    """Deltas apply atomically and report the resulting stock."""
    backend.products.add(make_product(stock=3))
    assert backend.products.update_stock("p-001", 2) == 5
    assert backend.products.update_stock("p-001", -5) == 0


def test_update_stock_never_goes_negative(backend):
    """A delta below zero is refused and nothing changes."""
    backend.products.add(make_product(stock=3))
    with pytest.raises(errors.InsufficientStockError) as exc:
        backend.products.update_stock("p-001", -4)
    assert exc.value.available == 3
    assert backend.products.get_by_id("p-001").stock == 3


def test_update_stock_unknown_product(backend):
    """Stock changes on missing products are not-found."""
    with pytest.raises(errors.ProductNotFoundError):
        backend.products.update_stock("nope", 1)


def test_concurrent_reservations_never_oversell(backend):
    """Of many parallel unit reservations only the stock's worth succeed."""
    if backend.name == "sqlite_engine_memory":
        pytest.skip("one shared connection cannot run parallel transactions")
    backend.products.add(make_product(stock=5))

    def reserve(_: int) -> bool:
        try:
            backend.products.update_stock("p-001", -1)
        except errors.InsufficientStockError:
            return False
        return True

    with cf.ThreadPoolExecutor(max_workers=4) as ex:
        outcomes = list(ex.map(reserve, range(12)))

    assert outcomes.count(True) == 5
    assert backend.products.get_by_id("p-001").stock == 0


def test_delete(backend):
    """Deleted products disappear from every read."""
    backend.products.add(make_product(1))
    backend.products.add(make_product(2))
    backend.products.delete("p-001")
    assert backend.products.get_by_id("p-001") is None
    assert backend.products.get_by_name("Product 1") is None
    page, total = backend.products.list(0, 10)
    assert total == 1
    assert [p.aggregate_id for p in page] == ["p-002"]
    with pytest.raises(errors.ProductNotFoundError):
        backend.products.delete("p-001")
