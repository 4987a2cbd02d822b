"""Concurrent checkouts against a real database.

Only meaningful on PostgreSQL, where each thread gets its own connection
and transaction. Run with ``pytest --env production`` (or any overlay whose
default database is PostgreSQL).
"""

from concurrent.futures import ThreadPoolExecutor

import pytest
from protean import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.errors import InsufficientStock
from storefront.order.placement import place_order
from storefront.stock.transaction import StockTransaction
from tests.storefront.builders import add_product, shipping, start_guest

pytestmark = pytest.mark.postgresql

BUYERS = 8


@pytest.fixture(autouse=True)
def _needs_postgresql():
    provider = current_domain.providers["default"]
    if provider.conn_info["provider"] != "postgresql":
        pytest.skip("needs a PostgreSQL database")


def _attempt(product_id, guest_id, quantity):
    with storefront.domain_context():
        try:
            place_order([{"product_id": product_id, "quantity": quantity}], guest_id=guest_id, **shipping())
            return "placed"
        except InsufficientStock:
            return "out_of_stock"


def _race(product_id, quantity):
    guests = [start_guest() for _ in range(BUYERS)]
    with ThreadPoolExecutor(max_workers=BUYERS) as pool:
        return list(pool.map(lambda g: _attempt(product_id, g, quantity), guests))


def test_last_unit_goes_to_exactly_one_buyer():
    product_id = add_product(stock_quantity=1)

    outcomes = _race(product_id, 1)

    assert outcomes.count("placed") == 1
    assert outcomes.count("out_of_stock") == BUYERS - 1
    assert current_domain.repository_for(Product).get(product_id).stock_quantity == 0


def test_stock_and_audit_agree_after_a_race():
    product_id = add_product(stock_quantity=10)

    outcomes = _race(product_id, 3)

    # Every loser saw fewer than 3 units left, so exactly floor(10 / 3) buyers win
    assert outcomes.count("placed") == 3
    assert outcomes.count("out_of_stock") == BUYERS - 3
    product = current_domain.repository_for(Product).get(product_id)
    assert product.stock_quantity == 1
    audit = current_domain.repository_for(StockTransaction).for_product(product_id)
    assert sum(t.quantity_change for t in audit) == product.stock_quantity


def test_two_buyers_wanting_more_than_half():
    product_id = add_product(stock_quantity=5)
    guests = [start_guest(), start_guest()]

    with ThreadPoolExecutor(max_workers=2) as pool:
        outcomes = list(pool.map(lambda g: _attempt(product_id, g, 3), guests))

    assert sorted(outcomes) == ["out_of_stock", "placed"]
    assert current_domain.repository_for(Product).get(product_id).stock_quantity == 2
