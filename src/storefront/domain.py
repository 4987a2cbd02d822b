"""Storefront bounded context — catalogue, cart, checkout and order lifecycle.

Every aggregate that takes part in order placement is registered here so a
single unit of work can span products, stock transactions, buyers, carts,
orders, payments and status history.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging

configure_logging()

storefront = Domain(name="storefront")
